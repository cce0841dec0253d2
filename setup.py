"""Prepare package for distribution."""
from pathlib import Path
from setuptools import setup
from toml import loads

if __name__ == "__main__":
    pyproject = loads((Path(__file__).parent / "pyproject.toml").read_text())
    setup(
        name=pyproject["project"]["name"],
        use_scm_version=pyproject["tool"]["setuptools_scm"],
    )
