from __future__ import annotations

import click
from flask import Flask

from estoque.contexts.catalogo.application.search import filtrar_insumos
from estoque.errors import AppError
from estoque.ui_strings import format_currency, format_date, get_ui_text
from estoque.workspace import get_workspace


def register_catalogo_cli(app: Flask) -> None:
    @app.cli.group("catalogo")
    def catalogo_group() -> None:
        """Consultas ao catalogo de insumos."""

    @catalogo_group.command("resumo")
    def catalogo_resumo() -> None:
        snapshot = _load_snapshot()
        click.echo(f"Insumos: {len(snapshot.insumos)}")
        click.echo(f"Categorias: {len(snapshot.categorias)}")
        click.echo(f"Unidades: {len(snapshot.unidades)}")

    @catalogo_group.command("listar")
    @click.option("--busca", default="", help="Filtra por nome ou categoria.")
    def catalogo_listar(busca: str) -> None:
        snapshot = _load_snapshot()
        insumos = filtrar_insumos(busca, snapshot.insumos)
        if not insumos:
            click.echo(get_ui_text("label.empty_list"))
            return
        for insumo in insumos:
            preco = format_currency(insumo.preco)
            click.echo(f"{insumo.nome} | {insumo.categoria} | {insumo.unidade} | {preco} | {format_date(insumo.created_at)}")


def _load_snapshot():
    workspace = get_workspace()
    try:
        with workspace.lock:
            return workspace.manager.load_all()
    except AppError as exc:
        raise click.ClickException(exc.user_message()) from exc
