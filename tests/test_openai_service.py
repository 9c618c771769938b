import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

import openai

from estoque.contexts.sugestao.application.bridge import RESPONSE_SHAPE, SugestaoBridge
from estoque.contexts.sugestao.domain.service import SuggestionServiceError
from estoque.contexts.sugestao.infrastructure.openai_service import OpenAISuggestionService
from estoque.domain.contracts import Sugestao
from estoque.errors import UpstreamError


def _completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class OpenAISuggestionServiceTest(unittest.TestCase):
    def test_sends_shape_and_returns_content(self) -> None:
        client = MagicMock()
        client.chat.completions.create.return_value = _completion(' {"categoria": "Bebidas", "unidade": "L"} ')
        service = OpenAISuggestionService(client=client, model="gpt-4o-mini")

        raw = service.generate("Sugira para Suco", RESPONSE_SHAPE)

        self.assertEqual(raw, '{"categoria": "Bebidas", "unidade": "L"}')
        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o-mini")
        self.assertEqual(kwargs["response_format"], {"type": "json_object"})
        self.assertEqual(kwargs["messages"][1], {"role": "user", "content": "Sugira para Suco"})
        self.assertIn("categoria", kwargs["messages"][0]["content"])
        self.assertIn("unidade", kwargs["messages"][0]["content"])

    def test_openai_error_is_wrapped(self) -> None:
        client = MagicMock()
        client.chat.completions.create.side_effect = openai.OpenAIError("rate limited")
        service = OpenAISuggestionService(client=client)
        with self.assertRaises(SuggestionServiceError):
            service.generate("x", RESPONSE_SHAPE)

    def test_empty_response_is_an_error(self) -> None:
        client = MagicMock()
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])
        with self.assertRaises(SuggestionServiceError):
            OpenAISuggestionService(client=client).generate("x", RESPONSE_SHAPE)

        client.chat.completions.create.return_value = _completion(None)
        with self.assertRaises(SuggestionServiceError):
            OpenAISuggestionService(client=client).generate("x", RESPONSE_SHAPE)

    def test_bridge_over_openai_service(self) -> None:
        client = MagicMock()
        client.chat.completions.create.return_value = _completion('{"categoria": "Limpeza", "unidade": "L"}')
        bridge = SugestaoBridge(OpenAISuggestionService(client=client))
        self.assertEqual(bridge.sugerir("Detergente"), Sugestao(categoria="Limpeza", unidade="L"))

        client.chat.completions.create.side_effect = openai.OpenAIError("boom")
        with self.assertRaises(UpstreamError):
            bridge.sugerir("Detergente")


if __name__ == "__main__":
    unittest.main()
