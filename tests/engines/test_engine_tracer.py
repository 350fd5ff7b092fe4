"""Tests for the @traced_engine decorator and input fingerprints."""

from decimal import Decimal

from settlement_kernel.domain.settlement import IncomeType

from settlement_engines.settlement import recompute_tax
from settlement_engines.tracer import compute_input_fingerprint, traced_engine


class TestComputeInputFingerprint:
    def test_deterministic(self):
        args = {"fee": 1000, "income_type": IncomeType.BUSINESS}
        first = compute_input_fingerprint(("fee", "income_type"), args)
        assert first == compute_input_fingerprint(("fee", "income_type"), dict(args))
        assert len(first) == 16

    def test_enum_and_text_agree(self):
        a = compute_input_fingerprint(("t",), {"t": IncomeType.OTHER})
        b = compute_input_fingerprint(("t",), {"t": "기타소득"})
        assert a == b

    def test_different_inputs_differ(self):
        a = compute_input_fingerprint(("fee",), {"fee": Decimal("1000")})
        b = compute_input_fingerprint(("fee",), {"fee": Decimal("1001")})
        assert a != b

    def test_missing_field_is_null(self):
        a = compute_input_fingerprint(("fee",), {})
        b = compute_input_fingerprint(("fee",), {"fee": None})
        assert a == b


class TestTracedEngine:
    def test_emits_trace_record(self, captured_logs):
        recompute_tax(1_000_000, IncomeType.BUSINESS)
        traces = [r for r in captured_logs() if r["message"] == "SETTLEMENT_ENGINE_TRACE"]
        assert traces
        trace = traces[-1]
        assert trace["engine_name"] == "settlement_tax"
        assert trace["engine_version"] == "1.0"
        assert len(trace["input_fingerprint"]) == 16
        assert trace["level"] == "DEBUG"

    def test_result_and_metadata_preserved(self, captured_logs):
        @traced_engine("double", "2.0", fingerprint_fields=("x",))
        def double(x):
            """Twice x."""
            return x * 2

        assert double(x=21) == 42
        assert double.__name__ == "double"
        assert double.__doc__ == "Twice x."
        trace = [r for r in captured_logs() if r.get("engine_name") == "double"][0]
        assert trace["engine_version"] == "2.0"
