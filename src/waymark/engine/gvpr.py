"""gvpr engine - compile requests to gvpr programs and run them.

gvpr is Graphviz's pattern-action graph processor. Queries run as
``gvpr PROGRAM DOCUMENT`` and print one value per line. Mutations run as
``gvpr -c -o OUTPUT PROGRAM DOCUMENT`` so the engine never reads and
writes the same file.

Every label and value is embedded through ``program_literal``; request
fields are never interpolated raw. Attribute access goes through
``aget``/``aset`` so attribute names cannot collide with gvpr
pseudo-attributes such as ``name``.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from waymark.engine.base import EngineResult, QueryEngine
from waymark.engine.requests import (
    AddEdge,
    FindNodes,
    Mutation,
    Neighbors,
    NodeAttribute,
    NodeExists,
    Query,
    RemoveNodes,
    SetSelection,
    Step,
    UpsertNode,
)
from waymark.graph.codec import check_attribute_key, program_literal
from waymark.graph.document import PENWIDTH, SELECTED

DEFAULT_TIMEOUT = 10.0


def _aset(var: str, key: str, value: str) -> str:
    return f"aset({var}, {program_literal(check_attribute_key(key))}, {program_literal(value)});"


def compile_query(query: Query) -> str:
    """Compile a query into gvpr program text.

    Args:
        query: Structured query.

    Returns:
        gvpr program printing one value per line.
    """
    body: list[str] = []

    if isinstance(query, FindNodes):
        conditions = [
            f"aget(v, {program_literal(check_attribute_key(k))}) == {program_literal(v)}"
            for k, v in query.where.items()
        ]
        test = " && ".join(conditions) if conditions else "1"
        body += [
            "node_t v;",
            "for (v = fstnode($G); v != NULL; v = nxtnode(v)) {",
            f"\tif ({test}) print(v.name);",
            "}",
        ]
    elif isinstance(query, Neighbors):
        if query.direction == "out":
            first, following, end = "fstout", "nxtout", "head"
        else:
            first, following, end = "fstin", "nxtin", "tail"
        body += [
            f"node_t n = isNode($G, {program_literal(query.label)});",
            "edge_t e;",
            "if (n != NULL) {",
            f"\tfor (e = {first}(n); e != NULL; e = {following}(e)) print(e.{end}.name);",
            "}",
        ]
    elif isinstance(query, NodeAttribute):
        key = program_literal(check_attribute_key(query.key))
        body += [
            f"node_t n = isNode($G, {program_literal(query.label)});",
            f"if (n != NULL) print(aget(n, {key}));",
        ]
    elif isinstance(query, NodeExists):
        body += [
            f"node_t n = isNode($G, {program_literal(query.label)});",
            "if (n != NULL) print(n.name);",
        ]
    else:
        raise TypeError(f"Unsupported query: {query!r}")

    return _wrap(type(query).__name__, body)


def _compile_step(step: Step) -> list[str]:
    if isinstance(step, UpsertNode):
        lines = [f"n = node($G, {program_literal(step.label)});"]
        lines += [_aset("n", k, v) for k, v in step.attrs.items()]
        return lines

    if isinstance(step, AddEdge):
        lines = [
            f"t = node($G, {program_literal(step.tail)});",
            f"h = node($G, {program_literal(step.head)});",
            'e = isEdge(t, h, "");',
            'if (e == NULL) e = edge(t, h, "");',
        ]
        lines += [_aset("e", k, v) for k, v in step.attrs.items()]
        return lines

    if isinstance(step, SetSelection):
        return [
            "for (v = fstnode($G); v != NULL; v = nxtnode(v)) {",
            f"\tif (v.name == {program_literal(step.label)}) {{",
            "\t\t" + _aset("v", SELECTED, "true"),
            "\t\t" + _aset("v", PENWIDTH, step.emphasis),
            "\t} else {",
            "\t\t" + _aset("v", SELECTED, "false"),
            "\t\t" + _aset("v", PENWIDTH, step.normal),
            "\t}",
            "}",
        ]

    if isinstance(step, RemoveNodes):
        lines = []
        for label in step.labels:
            lines += [
                f"n = isNode($G, {program_literal(label)});",
                "if (n != NULL) delete($G, n);",
            ]
        return lines

    raise TypeError(f"Unsupported mutation step: {step!r}")


def compile_mutation(mutation: Mutation) -> str:
    """Compile a mutation into one gvpr program.

    All steps run in order inside a single BEG_G block; with ``-c`` gvpr
    then writes the modified graph.
    """
    body = ["node_t n;", "node_t t;", "node_t h;", "node_t v;", "edge_t e;"]
    for step in mutation.steps:
        body.append(f"// {type(step).__name__}")
        body += _compile_step(step)
    return _wrap(mutation.operation, body)


def _wrap(title: str, body: list[str]) -> str:
    # title is always an internal identifier, never user text
    lines = [f"// waymark {title}", "BEG_G {"]
    lines += ["\t" + line for line in body]
    lines.append("}")
    return "\n".join(lines) + "\n"


class GvprEngine(QueryEngine):
    """Engine that runs compiled programs through the gvpr executable.

    Args:
        executable: gvpr command name or path.
        timeout: Seconds before an invocation counts as failed.
    """

    name = "gvpr"

    def __init__(self, executable: str = "gvpr", timeout: float = DEFAULT_TIMEOUT):
        self.executable = executable
        self.timeout = timeout

    def _invoke(self, result: EngineResult) -> EngineResult:
        argv = result.argv or []
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
        except FileNotFoundError:
            result.returncode = None
            result.error = f"{self.executable} not found"
            return result
        except subprocess.TimeoutExpired:
            result.returncode = None
            result.error = f"{self.executable} timed out after {self.timeout:g}s"
            return result
        except UnicodeDecodeError as e:
            result.returncode = None
            result.error = f"{self.executable} output is not UTF-8: {e}"
            return result
        except OSError as e:
            result.returncode = None
            result.error = f"{self.executable} could not be started: {e}"
            return result

        result.returncode = proc.returncode
        result.lines = proc.stdout.splitlines()
        result.stderr = proc.stderr
        if proc.returncode != 0:
            detail = proc.stderr.strip().splitlines()
            result.error = f"{self.executable} exited with status {proc.returncode}"
            if detail:
                result.error += f": {detail[-1]}"
        return result

    def run_query(self, document_path: Path, query: Query) -> EngineResult:
        program = compile_query(query)
        result = EngineResult(
            engine=self.name,
            kind="query",
            program=program,
            argv=[self.executable, program, str(document_path)],
        )
        return self._invoke(result)

    def run_mutation(
        self,
        document_path: Path,
        mutation: Mutation,
        output_path: Path,
    ) -> EngineResult:
        program = compile_mutation(mutation)
        result = EngineResult(
            engine=self.name,
            kind="mutation",
            program=program,
            argv=[
                self.executable,
                "-c",
                "-o",
                str(output_path),
                program,
                str(document_path),
            ],
        )
        return self._invoke(result)


__all__ = ["GvprEngine", "compile_query", "compile_mutation", "DEFAULT_TIMEOUT"]
