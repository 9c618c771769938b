import unittest

from estoque.ui_strings import error_message
from tests.helpers.fakes import CountingSuggestionService, build_test_app


class CatalogoApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self.app = build_test_app()
        self.client = self.app.test_client()

    def _insumos(self) -> list:
        response = self.client.get("/api/insumos")
        self.assertEqual(response.status_code, 200)
        return response.get_json()["items"]

    def test_catalogo_returns_three_collections(self) -> None:
        response = self.client.get("/api/catalogo")
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual([item["nome"] for item in payload["insumos"]], ["Farinha"])
        self.assertEqual(payload["insumos"][0]["preco"], "12.50")
        self.assertEqual([item["nome"] for item in payload["categorias"]], ["Grãos"])
        self.assertEqual([item["nome"] for item in payload["unidades"]], ["kg"])

    def test_catalogo_search(self) -> None:
        payload = self.client.get("/api/catalogo", query_string={"busca": "GRÃOS"}).get_json()
        self.assertEqual(len(payload["insumos"]), 1)
        self.assertEqual(len(payload["categorias"]), 1)
        self.assertEqual(payload["unidades"], [])

    def test_resumo(self) -> None:
        response = self.client.get("/api/catalogo/resumo")
        self.assertEqual(response.get_json(), {"insumos": 1})

    def test_create_insumo(self) -> None:
        response = self.client.post(
            "/api/insumos",
            json={"nome": "Arroz", "categoria": "Grãos", "unidade": "kg", "preco": "6,90"},
        )
        self.assertEqual(response.status_code, 201)
        payload = response.get_json()
        self.assertEqual(payload["insumo"]["preco"], "6.90")
        self.assertEqual([item["nome"] for item in self._insumos()], ["Arroz", "Farinha"])

    def test_create_insumo_validation_error(self) -> None:
        response = self.client.post("/api/insumos", json={"categoria": "Grãos", "unidade": "kg"})
        self.assertEqual(response.status_code, 400)
        payload = response.get_json()
        self.assertEqual(payload["error"], "nome_required")
        self.assertEqual(payload["message"], error_message("nome_required"))
        self.assertEqual(len(self._insumos()), 1)

    def test_create_insumo_rejects_unrepresentable_preco(self) -> None:
        for preco in ("1e30", "1.234"):
            response = self.client.post(
                "/api/insumos",
                json={"nome": "Arroz", "categoria": "Grãos", "unidade": "kg", "preco": preco},
            )
            self.assertEqual(response.status_code, 400, preco)
            self.assertEqual(response.get_json()["error"], "preco_invalid")
        self.assertEqual(len(self._insumos()), 1)

    def test_update_insumo(self) -> None:
        insumo_id = self._insumos()[0]["id"]
        response = self.client.patch(f"/api/insumos/{insumo_id}", json={"preco": "13.00", "id": "outro"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["insumo"]["id"], insumo_id)
        self.assertEqual(self._insumos()[0]["preco"], "13.00")

    def test_update_unknown_insumo(self) -> None:
        response = self.client.patch("/api/insumos/nao-existe", json={"nome": "Outro"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "insumo_not_found")

    def test_delete_insumo_requires_confirmation(self) -> None:
        insumo_id = self._insumos()[0]["id"]
        response = self.client.delete(f"/api/insumos/{insumo_id}")
        self.assertEqual(response.status_code, 428)
        payload = response.get_json()
        self.assertEqual(payload["error"], "confirmation_required")
        self.assertEqual(payload["action"], "delete_insumo")
        self.assertEqual(len(self._insumos()), 1)

        response = self.client.delete(f"/api/insumos/{insumo_id}", query_string={"confirm": "true"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._insumos(), [])

    def test_delete_confirmed_by_body(self) -> None:
        categoria = self.client.post("/api/categorias", json={"nome": "Bebidas"}).get_json()["categoria"]
        response = self.client.delete(f"/api/categorias/{categoria['id']}", json={"confirm": True})
        self.assertEqual(response.status_code, 200)

    def test_duplicate_categoria(self) -> None:
        response = self.client.post("/api/categorias", json={"nome": "Grãos"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "categoria_duplicate")
        listing = self.client.get("/api/categorias").get_json()["items"]
        self.assertEqual(len(listing), 1)

    def test_unidades_crud(self) -> None:
        created = self.client.post("/api/unidades", json={"nome": "L"})
        self.assertEqual(created.status_code, 201)
        unidade_id = created.get_json()["unidade"]["id"]

        renamed = self.client.patch(f"/api/unidades/{unidade_id}", json={"nome": "litro"})
        self.assertEqual(renamed.status_code, 200)
        self.assertEqual(renamed.get_json()["unidade"]["nome"], "litro")

        listing = self.client.get("/api/unidades", query_string={"busca": "LIT"}).get_json()
        self.assertEqual([item["nome"] for item in listing["items"]], ["litro"])

    def test_rename_reports_orphan_references(self) -> None:
        categoria_id = self.client.get("/api/categorias").get_json()["items"][0]["id"]
        self.client.patch(f"/api/categorias/{categoria_id}", json={"nome": "Cereais"})

        payload = self.client.get("/api/catalogo/referencias-orfas").get_json()
        self.assertEqual(len(payload["items"]), 1)
        self.assertEqual(payload["items"][0]["valor"], "Grãos")


class SugestaoApiTest(unittest.TestCase):
    def test_suggestion_endpoint(self) -> None:
        service = CountingSuggestionService({"categoria": "Bebidas", "unidade": "L"})
        client = build_test_app(suggestion_service=service).test_client()

        response = client.post("/api/insumos/sugestao", json={"nome": "Suco"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"categoria": "Bebidas", "unidade": "L"})

        response = client.post("/api/insumos/sugestao", json={"nome": "  "})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "suggestion_name_required")
        self.assertEqual(len(service.calls), 1)

    def test_suggestion_disabled_without_api_key(self) -> None:
        client = build_test_app().test_client()
        response = client.post("/api/insumos/sugestao", json={"nome": "Suco"})
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.get_json()["error"], "suggestion_disabled")


class FormularioApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self.service = CountingSuggestionService({"categoria": "Bebidas", "unidade": "L"})
        self.app = build_test_app(suggestion_service=self.service)
        self.client = self.app.test_client()

    def _post(self, path: str, body=None, expected: int = 200) -> dict:
        response = self.client.post(f"/api/insumos/formulario{path}", json=body or {})
        self.assertEqual(response.status_code, expected, response.get_data(as_text=True))
        return response.get_json()

    def test_inline_categoria_flow(self) -> None:
        self._post("/novo", {"nome": "X"})
        state = self._post("/subentidade", {"tipo": "categoria"})
        self.assertEqual(state["formulario"]["estado"], "editando_subentidade")

        state = self._post("/confirmar-subentidade", {"nome": "Bebidas"}, expected=201)
        self.assertEqual(state["criado"]["tipo"], "categoria")
        self.assertEqual(state["formulario"]["estado"], "editando_insumo")
        self.assertEqual(
            state["formulario"]["rascunho"],
            {"nome": "X", "categoria": "Bebidas", "unidade": "", "preco": None},
        )

        self._post("/atualizar", {"unidade": "kg", "preco": "5,00"})
        result = self._post("/enviar")
        self.assertEqual(result["insumo"]["categoria"], "Bebidas")
        self.assertEqual(result["insumo"]["preco"], "5.00")
        self.assertEqual(result["formulario"]["estado"], "ocioso")

    def test_cancel_subentidade_restores_draft(self) -> None:
        self._post("/novo", {"nome": "X", "unidade": "kg"})
        self._post("/subentidade", {"tipo": "unidade"})
        state = self._post("/cancelar-subentidade")
        self.assertEqual(state["formulario"]["rascunho"]["nome"], "X")
        self.assertEqual(state["formulario"]["rascunho"]["unidade"], "kg")

    def test_edit_existing(self) -> None:
        insumo_id = self.client.get("/api/insumos").get_json()["items"][0]["id"]
        state = self._post(f"/editar/{insumo_id}")
        self.assertEqual(state["formulario"]["insumo_id"], insumo_id)
        self._post("/atualizar", {"nome": "Farinha Integral"})
        result = self._post("/enviar")
        self.assertEqual(result["insumo"]["id"], insumo_id)
        self.assertEqual(result["insumo"]["nome"], "Farinha Integral")

    def test_suggestion_in_form(self) -> None:
        self._post("/novo", {"nome": "Suco", "unidade": "cx"})
        state = self._post("/sugerir")
        self.assertEqual(state["formulario"]["rascunho"]["categoria"], "Bebidas")
        self.assertEqual(state["formulario"]["rascunho"]["unidade"], "cx")
        self.assertEqual(state["formulario"]["estado"], "editando_insumo")

    def test_suggestion_in_form_runs_without_workspace_lock(self) -> None:
        workspace = self.app.extensions["estoque_workspace"]
        lock_states = []
        generate_real = self.service.generate

        def generate(prompt, response_shape):
            lock_states.append(workspace.lock.locked())
            return generate_real(prompt, response_shape)

        self.service.generate = generate
        self._post("/novo", {"nome": "Suco"})
        state = self._post("/sugerir")
        self.assertEqual(lock_states, [False])
        self.assertEqual(state["formulario"]["rascunho"]["categoria"], "Bebidas")

    def test_suggestion_in_form_requires_open_draft(self) -> None:
        payload = self._post("/sugerir", expected=409)
        self.assertEqual(payload["error"], "form_state_invalid")
        self.assertEqual(self.service.calls, [])

    def test_invalid_state(self) -> None:
        payload = self._post("/confirmar-subentidade", {"nome": "Bebidas"}, expected=409)
        self.assertEqual(payload["error"], "form_state_invalid")
        self.assertEqual(payload["estado"], "ocioso")

    def test_cancelar(self) -> None:
        self._post("/novo", {"nome": "X"})
        state = self._post("/cancelar")
        self.assertEqual(state["formulario"]["estado"], "ocioso")
        current = self.client.get("/api/insumos/formulario").get_json()
        self.assertIsNone(current["formulario"]["rascunho"])


class PedidosApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self.app = build_test_app()
        self.client = self.app.test_client()
        self.farinha_id = self.client.get("/api/insumos").get_json()["items"][0]["id"]

    def test_farinha_cart_scenario(self) -> None:
        response = self.client.put(f"/api/pedidos/carrinho/{self.farinha_id}", json={"quantidade": 3})
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(payload["total"], "37.50")
        self.assertEqual(payload["total_formatado"], "R$ 37,50")
        self.assertEqual(payload["item_count"], 3)

        payload = self.client.put(f"/api/pedidos/carrinho/{self.farinha_id}", json={"quantidade": 0}).get_json()
        self.assertEqual(payload["itens"], [])
        self.assertEqual(payload["total"], "0.00")

    def test_invalid_quantity(self) -> None:
        for quantidade in ("muito", "--3", "²"):
            response = self.client.put(f"/api/pedidos/carrinho/{self.farinha_id}", json={"quantidade": quantidade})
            self.assertEqual(response.status_code, 400, quantidade)
            self.assertEqual(response.get_json()["error"], "quantity_invalid")

    def test_unknown_item(self) -> None:
        response = self.client.put("/api/pedidos/carrinho/nao-existe", json={"quantidade": 1})
        self.assertEqual(response.status_code, 404)

    def test_grupos_and_clear(self) -> None:
        self.client.put(f"/api/pedidos/carrinho/{self.farinha_id}", json={"quantidade": 2})
        payload = self.client.get("/api/pedidos/grupos").get_json()
        self.assertEqual(len(payload["grupos"]), 1)
        grupo = payload["grupos"][0]
        self.assertEqual(grupo["categoria"], "Grãos")
        self.assertTrue(grupo["destacado"])
        self.assertEqual(grupo["itens"][0]["quantidade"], 2)
        self.assertEqual(payload["total_formatado"], "R$ 25,00")

        cleared = self.client.delete("/api/pedidos/carrinho").get_json()
        self.assertEqual(cleared["item_count"], 0)

        empty = self.client.get("/api/pedidos/grupos", query_string={"busca": "xyz"}).get_json()
        self.assertEqual(empty["grupos"], [])


if __name__ == "__main__":
    unittest.main()
