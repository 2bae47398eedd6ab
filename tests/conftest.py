"""Shared fixtures for waymark tests."""

from __future__ import annotations

import os

import pytest

from waymark.config import DEFAULT_CONFIG, merge_configs
from waymark.session import Session
from waymark.store import GraphStore


@pytest.fixture(autouse=True)
def _clean_waymark_env(monkeypatch):
    """Keep WAYMARK_* variables of the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("WAYMARK_"):
            monkeypatch.delenv(name)


def _make_config(tmp_path, **sections):
    config = merge_configs(DEFAULT_CONFIG, {"engine": {"kind": "builtin"}})
    config = merge_configs(config, sections)
    config["_config_path"] = None
    config["_base_dir"] = tmp_path
    return config


@pytest.fixture
def make_config(tmp_path):
    """Factory: default configuration rooted at tmp_path with section overrides."""

    def factory(**sections):
        return _make_config(tmp_path, **sections)

    return factory


@pytest.fixture
def session(make_config):
    """Session using the builtin engine with documents under tmp_path."""
    return Session.from_config(make_config())


@pytest.fixture
def store(session):
    """Fresh graph "g" holding only the root."""
    return GraphStore.create(session, "g")


@pytest.fixture
def tree(store):
    """root -> A -> (B, C, D); A -> B -> E. D is selected.

    Children of A in insertion order: B, C, D.
    """
    store.add_node("A")
    store.add_node("B")
    store.add_node("E")
    store.select("A")
    store.add_node("C")
    store.select("A")
    store.add_node("D")
    return store
