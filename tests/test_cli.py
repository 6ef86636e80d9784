import json

import pytest

from lexnav.cli import main


def test_reference_command(capsys):
    main(["reference", "--section", "Act > Section 14 > Offences"])
    assert capsys.readouterr().out.strip() == "Section 14"


def test_legal_citations_command(capsys):
    main(["legal-citations", "See Part IV and section 3(1)."])
    lines = capsys.readouterr().out.strip().splitlines()
    assert [line.split("\t")[2] for line in lines] == ["part_4", "sec_3__subsec_1"]


def test_render_akoma_ntoso_file(capsys, fixtures_dir):
    main(["render", str(fixtures_dir / "sample_act.xml")])
    out = capsys.readouterr().out
    assert "PART II – Employment" in out
    assert "Schedule 1 – Currency point" in out


def test_toc_command(capsys, fixtures_dir):
    main(["toc", str(fixtures_dir / "sample_act.json")])
    out = capsys.readouterr().out
    assert "Part II – Employment" in out
    assert "3. Application" in out


def test_export_command(capsys, tmp_path, sources):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps([source.model_dump(mode="json") for source in sources]), encoding="utf-8")

    main(["export", str(path), "--index", "2", "--format", "oscola"])
    assert capsys.readouterr().out.strip() == "Okello v Uganda [2019] UGSC 12"

    with pytest.raises(SystemExit):
        main(["export", str(path), "--index", "5"])


def test_invalid_document_exits(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"hierarchical_structure": {"children": "bad"}}), encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        main(["render", str(path)])
    assert excinfo.value.code == 1


def test_markers_command(capsys, tmp_path, sources):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps({"sources": [source.model_dump(mode="json") for source in sources]}), encoding="utf-8")

    main(["markers", "Applies [1] but see [4].", "--sources", str(path)])
    out = capsys.readouterr().out
    assert "citation [1] -> 1: Employment Act Section 3(2)" in out
    assert "citation [4] -> 4: <unresolved>" in out
    assert "source   DOC-7 x2" in out
