"""Tests for the maintenance command line."""

import asyncio

import pytest
from typer.testing import CliRunner
from ulid import ULID

from notenest import ApplicationBuilder, CreateCategory
from notenest.cli import app
from notenest.integrations.sqlite import SqliteConfiguration

runner = CliRunner()


@pytest.fixture
def config(tmp_path) -> SqliteConfiguration:
    config = SqliteConfiguration(
        events_path=str(tmp_path / "events.db"),
        projections_path=str(tmp_path / "projections.db"),
    )
    asyncio.run(config.on_startup())
    return config


@pytest.fixture
def invoke(config):
    def run(*args: str, input: str | None = None):
        return runner.invoke(
            app,
            [
                "--events-path",
                config.events_path,
                "--projections-path",
                config.projections_path,
                *args,
            ],
            input=input,
        )

    return run


@pytest.fixture
def corrupted(config, make_node) -> ULID:
    node_id = ULID()

    async def seed():
        await config.tree_store.upsert(make_node("Loop", parent_id=node_id, node_id=node_id))
        await config.tree_store.upsert(make_node("Lost", parent_id=ULID()))

    asyncio.run(seed())
    return node_id


def _seed_category(config: SqliteConfiguration, name: str) -> None:
    async def seed():
        async with ApplicationBuilder().use_sqlite(config).build() as application:
            await application.dispatch(CreateCategory(name=name))

    asyncio.run(seed())


def test_check_healthy(invoke):
    result = invoke("check")

    assert result.exit_code == 0
    assert "Tree is healthy" in result.output


def test_check_reports_issues(invoke, corrupted):
    result = invoke("check")

    assert result.exit_code == 1
    assert "[self_reference] Loop" in result.output
    assert "[orphan] Lost" in result.output


def test_repair_requires_a_flag(invoke):
    result = invoke("repair")

    assert result.exit_code == 2


def test_repair_promotes_nodes(invoke, corrupted):
    result = invoke("repair", "--self-references", "--orphans")

    assert result.exit_code == 0
    assert "Promoted 1 self-referencing node(s) to root" in result.output
    assert "Promoted 1 orphaned node(s) to root" in result.output
    assert "Tree is healthy: 2 nodes, 2 roots" in result.output


def test_delete_self_references_asks_first(invoke, config, corrupted):
    declined = invoke("delete-self-references", input="n\n")

    assert declined.exit_code == 1
    assert asyncio.run(config.tree_store.count_nodes()) == 2

    accepted = invoke("delete-self-references", "--yes")

    assert accepted.exit_code == 0
    assert "Deleted 1 self-referencing node(s)" in accepted.output
    assert asyncio.run(config.tree_store.get(corrupted)) is None


def test_rebuild(invoke, config):
    _seed_category(config, "Work")

    result = invoke("rebuild", "tree_view")

    assert result.exit_code == 0
    assert "Rebuilt from 1 event(s)" in result.output


def test_rebuild_unknown_projection(invoke):
    result = invoke("rebuild", "nope")

    assert result.exit_code == 2
    assert "Unknown projection: nope" in result.output


def test_status(invoke, config):
    _seed_category(config, "Work")

    result = invoke("status")

    assert result.exit_code == 0
    assert "tree_view: position 1/1 (up to date)" in result.output
    assert "todo_view: position 1/1 (up to date)" in result.output
