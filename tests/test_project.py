from pathlib import Path


def test_package_metadata_has_no_readme_override():
    source = (Path(__file__).parent.parent / "pyproject.toml").read_text(encoding="utf-8")
    assert "readme" not in source
    assert 'name = "doc-consolidator"' in source
