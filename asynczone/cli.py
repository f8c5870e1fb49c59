"""
Typer CLI for asynczone.

Commands: list, show, config. Entrypoint: main() for console script asynczone.cli:main.
"""
import json
import logging

import typer
from typer import Exit

import asynczone.storage as storage
from asynczone.config import load_config
from asynczone.events import FORMAT_VERSION

EXIT_NOT_FOUND = 2
EXIT_INTERNAL = 10

app = typer.Typer(help="asynczone CLI: list recorded traces, show one task by task, or print the configuration.")


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log asynczone debug output to stderr"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _trace_table_rows(traces: list[dict]) -> list[list[str]]:
    """Rows: trace_id (short), trace_name, started_at, tasks, never_ran, status."""
    rows = []
    for t in traces:
        trace_id = (t.get("trace_id") or "")[:8]
        rows.append([
            trace_id,
            t.get("trace_name") or "",
            t.get("started_at") or "",
            str(t.get("task_total", 0)),
            str(t.get("never_ran", 0)),
            t.get("status") or "",
        ])
    return rows


def _format_text_table(rows: list[list[str]], headers: list[str]) -> str:
    """Format rows as a simple tab-separated, left-aligned text table."""
    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[: len(col_widths)]):
            col_widths[i] = max(col_widths[i], len(cell))
    lines = ["\t".join(h.ljust(col_widths[i]) for i, h in enumerate(headers))]
    for row in rows:
        lines.append("\t".join(cell.ljust(col_widths[i]) for i, cell in enumerate(row[: len(col_widths)])))
    return "\n".join(lines)


def _runs_cell(task: dict) -> str:
    if task["running"]:
        return f"{task['runs']} (+{task['running']} unfinished)"
    if task["runs"] == 0:
        return "never ran"
    return str(task["runs"])


@app.command("list")
def list_cmd(
    limit: int = typer.Option(20, "--limit", "-n", help="Max traces to list"),
    json_out: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
) -> None:
    """List recently recorded traces."""
    try:
        config = load_config()
        traces = storage.list_traces(limit=limit, config=config)
        if json_out:
            typer.echo(json.dumps({"format_version": FORMAT_VERSION, "traces": traces}, ensure_ascii=False))
        else:
            headers = ["trace_id", "trace_name", "started_at", "tasks", "never_ran", "status"]
            typer.echo(_format_text_table(_trace_table_rows(traces), headers))
    except Exception as e:
        if not json_out:
            typer.echo(f"error: {e}", err=True)
        raise Exit(EXIT_INTERNAL)


@app.command("show")
def show_cmd(
    trace_id: str = typer.Argument(..., help="Trace ID or prefix to show"),
    json_out: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
) -> None:
    """Show one trace task by task: scheduling zones, completed runs, and tasks that never ran."""
    try:
        config = load_config()
        try:
            trace_id = storage.find_trace(trace_id, config)
        except FileNotFoundError as e:
            typer.echo(f"Trace not found: {e}", err=True)
            raise Exit(EXIT_NOT_FOUND)
        summary = storage.summarize(storage.read_trace(trace_id, config))
        summary["trace_id"] = trace_id
        if json_out:
            typer.echo(json.dumps({"format_version": FORMAT_VERSION, "trace": summary}, ensure_ascii=False))
            return
        typer.echo(f"trace   {trace_id}  {summary['trace_name'] or ''}  [{summary['status']}]")
        typer.echo(f"started {summary['started_at'] or '-'}  ended {summary['ended_at'] or '-'}")
        headers = ["task_id", "name", "runs", "zones"]
        rows = [
            [t["task_id"][:8], t["name"] or "", _runs_cell(t), " ".join(t["zones"])]
            for t in summary["tasks"]
        ]
        typer.echo(_format_text_table(rows, headers))
        if summary["never_ran"]:
            typer.echo(f"{len(summary['never_ran'])} task(s) scheduled but never ran")
    except Exit:
        raise
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        raise Exit(EXIT_INTERNAL)


@app.command("config")
def config_cmd(
    json_out: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
) -> None:
    """Show the resolved configuration (env > project YAML > user YAML > defaults)."""
    config = load_config()
    data = config.to_dict()
    if json_out:
        typer.echo(json.dumps(data, ensure_ascii=False))
        return
    width = max(len(k) for k in data)
    for key, value in data.items():
        typer.echo(f"{key.ljust(width)}  {value}")


def main() -> None:
    """CLI entrypoint (console script asynczone.cli:main)."""
    app()


if __name__ == "__main__":
    main()
