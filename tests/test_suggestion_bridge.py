import unittest

from estoque.contexts.sugestao.application.bridge import RESPONSE_SHAPE, SugestaoBridge, mesclar_sugestao
from estoque.contexts.sugestao.domain.service import DisabledSuggestionService
from estoque.domain.contracts import InsumoDraft, Sugestao
from estoque.errors import UpstreamError, ValidationError
from estoque.observability import metrics_snapshot, reset_metrics_for_tests
from tests.helpers.fakes import CountingSuggestionService, failing_suggestion_service


class SugestaoBridgeTest(unittest.TestCase):
    def setUp(self) -> None:
        reset_metrics_for_tests()

    def test_blank_name_does_not_call_service(self) -> None:
        service = CountingSuggestionService()
        bridge = SugestaoBridge(service)
        for nome in ("", "   ", None):
            with self.assertRaises(ValidationError) as ctx:
                bridge.sugerir(nome)
            self.assertEqual(ctx.exception.code, "suggestion_name_required")
        self.assertEqual(len(service.calls), 0)

    def test_valid_response(self) -> None:
        service = CountingSuggestionService({"categoria": " Laticinios ", "unidade": "L"})
        sugestao = SugestaoBridge(service).sugerir("Leite")
        self.assertEqual(sugestao, Sugestao(categoria="Laticinios", unidade="L"))
        self.assertEqual(service.calls[0]["response_shape"], RESPONSE_SHAPE)
        self.assertIn('"Leite"', service.calls[0]["prompt"])
        self.assertEqual(metrics_snapshot()["suggestions"], {"ok": 1})

    def test_malformed_payloads_are_upstream_errors(self) -> None:
        payloads = [
            "not json",
            "[]",
            '{"categoria": "Bebidas"}',
            '{"categoria": "Bebidas", "unidade": "L", "extra": 1}',
            '{"categoria": "Bebidas", "unidade": 5}',
            '{"categoria": "", "unidade": "L"}',
        ]
        for raw in payloads:
            with self.assertRaises(UpstreamError, msg=raw) as ctx:
                SugestaoBridge(CountingSuggestionService(raw)).sugerir("Leite")
            self.assertEqual(ctx.exception.http_status, 502)
        self.assertEqual(metrics_snapshot()["suggestions"], {"invalid": len(payloads)})

    def test_service_failure_is_upstream_error(self) -> None:
        with self.assertRaises(UpstreamError) as ctx:
            SugestaoBridge(failing_suggestion_service("timed out")).sugerir("Leite")
        self.assertEqual(ctx.exception.code, "suggestion_failed")
        self.assertIn("timed out", ctx.exception.details)

    def test_disabled_service(self) -> None:
        with self.assertRaises(UpstreamError) as ctx:
            SugestaoBridge(DisabledSuggestionService()).sugerir("Leite")
        self.assertEqual(ctx.exception.code, "suggestion_disabled")
        self.assertEqual(ctx.exception.user_message(), "API Key da IA nao configurada.")


class MesclarSugestaoTest(unittest.TestCase):
    def test_fills_blank_fields_only(self) -> None:
        draft = InsumoDraft(nome="Leite", categoria="", unidade="cx")
        merged = mesclar_sugestao(draft, Sugestao(categoria="Laticinios", unidade="L"))
        self.assertEqual(merged, InsumoDraft(nome="Leite", categoria="Laticinios", unidade="cx"))
        self.assertEqual(draft.categoria, "")

    def test_never_overwrites_edited_fields(self) -> None:
        draft = InsumoDraft(nome="Leite", categoria="Bebidas", unidade="L")
        merged = mesclar_sugestao(draft, Sugestao(categoria="Laticinios", unidade="ml"))
        self.assertEqual(merged, draft)


if __name__ == "__main__":
    unittest.main()
