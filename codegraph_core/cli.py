"""Typer-based CLI for the code knowledge graph pipeline."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import LLMConfig, PipelineConfig, load_config, save_config
from .languages import EXTENSION_MAP, FILENAME_MAP, Language, classify, is_supported, supported_languages
from .llm import create_provider
from .models import AnalysisResult, SourceFile
from .pipeline import CodeGraphPipeline
from .rules import rules_for

console = Console()

app = typer.Typer(
    help="Code knowledge graph: structure, dependencies and cycles across languages.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

MAX_EDGES_SHOWN = 30


def default_config_path() -> Path:
    base = Path(os.environ.get("CODEGRAPH_HOME", str(Path.home() / ".codegraph"))).expanduser()
    return base / "config.toml"


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"codegraph-core v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline progress to stderr."),
):
    """Analyze source trees into a file-level dependency graph."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def collect_files(root: Path, skip_dirs) -> List[SourceFile]:
    """Read every supported file under *root* (or *root* itself), sorted by path."""
    if root.is_file():
        return [SourceFile(path=root.name, content=root.read_bytes())]

    files: List[SourceFile] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(root)
        if any(part in skip_dirs for part in rel.parts[:-1]):
            continue
        if classify(rel.name) is None:
            continue
        try:
            files.append(SourceFile(path=rel.as_posix(), content=path.read_bytes()))
        except OSError as exc:
            console.print(f"[yellow]![/yellow] Could not read {rel}: {exc}")
    return files


def _render(result: AnalysisResult) -> None:
    meta = result.project_metadata
    console.print(
        Panel.fit(
            f"[bold]{meta.total_files}[/bold] files  "
            f"[bold]{meta.total_lines}[/bold] lines  "
            f"[bold]{meta.total_functions}[/bold] functions  "
            f"[bold]{meta.total_types}[/bold] types\n"
            f"Complexity avg {meta.complexity.average} / max {meta.complexity.highest}  "
            f"Unresolved imports: {len(meta.unresolved_imports)}  "
            f"Skipped files: {len(meta.skipped_files)}",
            title="Project",
            border_style="cyan",
        )
    )

    languages = Table(title="Languages", show_header=True)
    languages.add_column("Language", style="cyan")
    languages.add_column("Files", justify="right")
    for lang, count in meta.languages.items():
        languages.add_row(lang, str(count))
    console.print(languages)

    edges = Table(title=f"Dependencies ({len(result.graph.edges)} edges)", show_header=True)
    edges.add_column("Source", style="green")
    edges.add_column("Target", style="green")
    edges.add_column("Kind")
    edges.add_column("Weight", justify="right")
    for edge in result.graph.edges[:MAX_EDGES_SHOWN]:
        edges.add_row(edge.source, edge.target, edge.kind, str(edge.weight))
    console.print(edges)
    if len(result.graph.edges) > MAX_EDGES_SHOWN:
        console.print(f"[dim]... {len(result.graph.edges) - MAX_EDGES_SHOWN} more (use --json)[/dim]")

    if result.cycles:
        console.print(f"\n[bold red]Circular dependencies ({len(result.cycles)})[/bold red]")
        for cycle in result.cycles:
            console.print(f"  • {cycle}")
    else:
        console.print("\n[green]✓[/green] No circular dependencies")

    if result.enrichment is not None:
        source = "local fallback" if result.enrichment_state == "fallback" else "provider"
        body = [result.enrichment.summary, ""]
        body += [f"• {r}" for r in result.enrichment.recommendations]
        body.append(
            f"\nComplexity score {result.enrichment.complexity_score:g}  "
            f"Quality score {result.enrichment.quality_score:g}"
        )
        console.print(Panel("\n".join(body), title=f"Enrichment ({source})", border_style="magenta"))


@app.command("analyze")
def analyze(
    path: Path = typer.Argument(..., exists=True, help="Project directory or single source file."),
    enrich: bool = typer.Option(False, "--enrich", help="Ask an LLM provider for a semantic analysis."),
    provider: Optional[str] = typer.Option(None, "--provider", help="ollama, groq, openai, openrouter, anthropic, gemini."),
    model: Optional[str] = typer.Option(None, "--model", help="Model name for the provider."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="API key for cloud providers."),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", help="Custom provider endpoint."),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON result to FILE."),
    max_cycles: Optional[int] = typer.Option(None, "--max-cycles", help="Cycle report cap (-1 for no cap)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Enrichment timeout in seconds."),
    config_file: Optional[Path] = typer.Option(None, "--config", help="TOML config (default: $CODEGRAPH_HOME/config.toml)."),
):
    """Build the dependency graph of a project and report cycles."""
    cfg = load_config(config_file or default_config_path())
    if max_cycles is not None:
        cfg.max_cycles = None if max_cycles < 0 else max_cycles
    if timeout is not None:
        if timeout <= 0:
            raise typer.BadParameter("--timeout must be positive")
        cfg.enrichment_timeout = timeout
    if provider or model or api_key or endpoint:
        base = cfg.llm if not provider or provider.lower() == cfg.llm.provider else LLMConfig(provider=provider)
        cfg.llm = LLMConfig(
            provider=base.provider,
            model=model or base.model,
            api_key=api_key or base.api_key,
            endpoint=endpoint or base.endpoint,
            max_tokens=base.max_tokens,
            temperature=base.temperature,
        )

    files = collect_files(path, cfg.skip_dirs)
    if not files:
        console.print(f"[red]✗[/red] No supported source files found under {path}")
        raise typer.Exit(code=1)

    llm_provider = create_provider(cfg.llm, timeout=cfg.enrichment_timeout) if enrich else None
    pipeline = CodeGraphPipeline(config=cfg, provider=llm_provider)
    if not as_json:
        console.print(f"[bold cyan]Analyzing {len(files)} files in {path}...[/bold cyan]")
    result = pipeline.analyze(files, enrich=enrich)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.to_json(), encoding="utf-8")
        if not as_json:
            console.print(f"[green]✓[/green] Wrote {output}")

    if as_json:
        typer.echo(result.to_json())
    else:
        _render(result)


@app.command("languages")
def languages(
    name: Optional[str] = typer.Argument(None, help="Show a single language."),
):
    """List supported languages, their extensions and extraction depth."""
    if name is not None and not is_supported(name.lower()):
        console.print(f"[red]✗[/red] Unsupported language: {name}")
        raise typer.Exit(code=1)
    shown = [Language(name.lower())] if name else supported_languages()

    by_language: Dict[Language, List[str]] = {lang: [] for lang in Language}
    for ext, lang in EXTENSION_MAP.items():
        by_language[lang].append(ext)
    for filename, lang in FILENAME_MAP.items():
        by_language[lang].append(filename)

    table = Table(title="Supported languages", show_header=True)
    table.add_column("Language", style="cyan")
    table.add_column("Extensions")
    table.add_column("Extraction")
    for lang in shown:
        depth = "structural" if rules_for(lang).has_matchers else "metadata only"
        table.add_row(lang.value, " ".join(by_language[lang]), depth)
    console.print(table)


@app.command("init-config")
def init_config(
    path: Optional[Path] = typer.Option(None, "--path", help="Where to write the config file."),
    provider: str = typer.Option("ollama", "--provider", help="Default enrichment provider."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
):
    """Write a config.toml with the default pipeline settings."""
    target = path or default_config_path()
    if target.exists() and not force:
        console.print(f"[yellow]![/yellow] {target} already exists (use --force to overwrite)")
        raise typer.Exit(code=1)
    if not save_config(PipelineConfig(llm=LLMConfig(provider=provider)), target):
        console.print(f"[red]✗[/red] Could not write {target}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Wrote {target}")


if __name__ == "__main__":
    app()
