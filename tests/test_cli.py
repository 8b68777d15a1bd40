import sys

import orjson
import pytest

from conftest import FakeSession, b64, elm_text
from pipeline import cli_process, cli_update_elm

FOO_CQL = "library Foo version '1.0.0'\n"


@pytest.fixture
def cli_workspace(tmp_path, monkeypatch, multipart_response):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CQL_ELM_TRANSLATOR_ENDPOINT", raising=False)
    monkeypatch.delenv("CQL_ELM_SOURCE_DIR", raising=False)

    (tmp_path / "cql").mkdir()
    (tmp_path / "cql" / "FHIRHelpers.cql").write_text("library FHIRHelpers\n")
    resources = tmp_path / "resources"
    resources.mkdir()
    (resources / "library-foo.json").write_bytes(
        orjson.dumps(
            {
                "resourceType": "Library",
                "content": [{"contentType": "text/cql", "data": b64(FOO_CQL)}],
            }
        )
    )
    config = tmp_path / "config.yaml"
    config.write_text(
        "paths:\n"
        f"  source_dir: {tmp_path / 'cql'}\n"
        f"  resources_dir: {resources}\n"
        f"  output_dir: {tmp_path / 'out'}\n"
        f"  elm_output_dir: {tmp_path / 'elm'}\n"
    )

    session = FakeSession(
        multipart_response(
            [("Foo", elm_text("Foo")), ("FHIRHelpers", elm_text("FHIRHelpers"))]
        )
    )
    monkeypatch.setattr("translation.client.requests.Session", lambda: session)
    return tmp_path, config, session


def _run(monkeypatch, module, *args):
    monkeypatch.setattr(sys, "argv", [module.__name__, *args])
    module.main()


def test_process_overrides_flags_and_endpoint(cli_workspace, monkeypatch):
    tmp_path, config, session = cli_workspace

    _run(
        monkeypatch,
        cli_process,
        "library-foo",
        "--config",
        str(config),
        "--translator-url",
        "http://translator.test/cql",
        "--no-locators",
        "--no-result-types",
    )

    (call,) = session.calls
    assert call["url"] == "http://translator.test/cql"
    assert ("locators", "false") in call["params"]
    assert ("result-types", "false") in call["params"]
    assert ("annotations", "true") in call["params"]
    assert (tmp_path / "out" / "library-foo_with_elm.json").exists()


def test_process_keeps_going_after_a_failed_resource(cli_workspace, monkeypatch):
    tmp_path, config, session = cli_workspace

    with pytest.raises(SystemExit) as excinfo:
        _run(
            monkeypatch,
            cli_process,
            "missing-resource",
            "library-foo",
            "--config",
            str(config),
        )

    assert excinfo.value.code == 1
    assert len(session.calls) == 1
    assert (tmp_path / "out" / "library-foo_with_elm.json").exists()
    assert sorted(p.name for p in (tmp_path / "elm").iterdir()) == [
        "FHIRHelpers.json",
        "Foo.json",
    ]


def test_update_exits_on_missing_file(tmp_path, monkeypatch):
    with pytest.raises(SystemExit) as excinfo:
        _run(
            monkeypatch,
            cli_update_elm,
            str(tmp_path / "missing.json"),
            str(tmp_path / "library.json"),
        )
    assert excinfo.value.code == 1


def test_update_rewrites_library(tmp_path, monkeypatch):
    elm_path = tmp_path / "Foo.json"
    elm_path.write_text(elm_text("Foo"), encoding="utf-8")
    library_path = tmp_path / "library.json"
    library_path.write_bytes(
        orjson.dumps({"content": [{"contentType": "application/elm+json", "data": ""}]})
    )

    _run(monkeypatch, cli_update_elm, str(elm_path), str(library_path))

    updated = orjson.loads(library_path.read_bytes())
    assert updated["content"][0]["data"]
