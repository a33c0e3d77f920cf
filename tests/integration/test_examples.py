"""
Integration tests for building and running the example projects.

This test suite validates:
1. A single-file program builds to <build_dir>/<stem> and its output is captured
2. Local dependencies are compiled to objects and linked
3. Serial and parallel builds produce the same program output
4. Bare includes of headers in subdirectories compile and link
5. Compiler failures are reported as compilation errors
"""

import io
import shutil

import pytest

from morfo import Config, execute
from morfo.errors import CompilationError

CC = shutil.which("cc") or shutil.which("gcc") or shutil.which("clang")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(CC is None, reason="no C compiler on PATH"),
]


def test_hello_world(example_project, tmp_path):
    project = example_project("hello_world")
    config = Config(cc=CC, build_dir=tmp_path / ".out")
    sink = io.BytesIO()

    result = execute(project / "main.c", config, sink)

    assert result.success, result.error
    assert sink.getvalue() == b"Hello World!\n"
    assert [p.name for p in (tmp_path / ".out").iterdir()] == ["main"]


@pytest.mark.parametrize("jobs", [1, 2])
def test_multi_file(example_project, tmp_path, jobs):
    project = example_project("multi_file")
    config = Config(cc=CC, cflags=("-Wall",), build_dir=tmp_path / ".out", jobs=jobs)
    sink = io.BytesIO()

    result = execute(project / "main.c", config, sink, ["x", "y"])

    assert result.success, result.error
    assert sink.getvalue() == b"(4, 6)\nargs: 2\n"
    assert sorted(p.name for p in (tmp_path / ".out").iterdir()) == ["main", "vec.c.o"]


def test_custom_build_with_include_dirs(example_project, tmp_path):
    project = example_project("custom_build")
    config = Config(cc=CC, build_dir=tmp_path / ".build", includes=("include",))
    sink = io.BytesIO()

    result = execute(project / "main.c", config, sink, ["tester"])

    assert result.success, result.error
    assert sink.getvalue() == b"Hello, tester!\n"


def test_bare_include_of_header_in_subdirectory(tmp_path):
    project = tmp_path / "project"
    (project / "util").mkdir(parents=True)
    (project / "main.c").write_text(
        '#include <stdio.h>\n#include "twice.h"\nint main(void) { printf("%d\\n", twice(21)); return 0; }\n'
    )
    (project / "util" / "twice.h").write_text("int twice(int x);\n")
    (project / "util" / "twice.c").write_text('#include "twice.h"\nint twice(int x) { return 2 * x; }\n')
    config = Config(cc=CC, build_dir=tmp_path / ".out")
    sink = io.BytesIO()

    result = execute(project / "main.c", config, sink)

    assert result.success, result.error
    assert sink.getvalue() == b"42\n"


def test_syntax_error_is_compilation_failure(tmp_path):
    source = tmp_path / "main.c"
    source.write_text("int main(void) { return }\n")
    config = Config(cc=CC, build_dir=tmp_path / ".out")

    result = execute(source, config, io.BytesIO())

    assert isinstance(result.error, CompilationError)
    assert result.error.exit_code not in (None, 0)
    assert result.run_result is None
