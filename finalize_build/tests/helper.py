# -*- coding: utf-8 -*-

import subprocess
from pathlib import Path

dir_project_root = Path(__file__).absolute().parent.parent.parent
dir_htmlcov = dir_project_root.joinpath("htmlcov")


def run_cov_test(
    script: str,
    module: str,
    preview: bool = False,
):
    """
    Run one test file with coverage measured on one module.

    :param script: path of the test file, usually ``__file__``.
    :param module: dotted name of the module under test.
    :param preview: open the html report when done.
    """
    args = [
        "pytest",
        "-s",
        "--tb=native",
        f"--rootdir={dir_project_root}",
        f"--cov={module}",
        "--cov-report",
        "term-missing",
        "--cov-report",
        f"html:{dir_htmlcov}",
        script,
    ]
    subprocess.run(args, cwd=dir_project_root)
    if preview:  # pragma: no cover
        subprocess.run(["open", str(dir_htmlcov.joinpath("index.html"))])
