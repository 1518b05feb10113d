from __future__ import annotations

from pathlib import Path

import typer

from .config import RunConfig
from .dataset import NetworkFile, load_network, read_vectors, write_vectors
from .errors import NnetError
from .evaluator import Evaluator
from .logging_config import setup_logging
from .verify import evaluate_rows, verify

app = typer.Typer(no_args_is_help=True)


@app.callback()
def _root() -> None:
    """Feed-forward network evaluation over flat weight arrays."""
    return


def _load_evaluator(network: Path, cfg: RunConfig) -> Evaluator:
    net = load_network(network)
    if cfg.transform is not None:
        net = NetworkFile(dims=net.dims, weights=net.weights, transform=cfg.transform)
    return Evaluator.from_network(net, dtype=cfg.np_dtype)


@app.command("evaluate")
def evaluate_cmd(
    network: Path = typer.Option(..., exists=True, dir_okay=False, help="Network JSON: nx, nh, ny, weights[, transform]"),
    inputs: Path = typer.Option(..., exists=True, dir_okay=False, help="Headerless CSV, one input vector per row"),
    out: Path = typer.Option(..., help="Output CSV, one row of ny values per input row"),
    dtype: str = typer.Option("float64", help="float32 or float64"),
    transform: str | None = typer.Option(None, help="Override transfer function: logistic, linear, tanh"),
    log_level: str = typer.Option("WARNING", help="Logging level"),
    progress: bool = typer.Option(True, help="Show a progress bar"),
) -> None:
    """Evaluate the network once per input row."""

    try:
        cfg = RunConfig(dtype=dtype, transform=transform, log_level=log_level)
        setup_logging(cfg.level)
        evaluator = _load_evaluator(network, cfg)
        x = read_vectors(inputs, dtype=cfg.np_dtype)
        y = evaluate_rows(evaluator, x, progress=progress)
    except NnetError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=1)

    write_vectors(out, y.tolist())
    typer.echo(f"Wrote {y.shape[0]} rows -> {out}")


@app.command("verify")
def verify_cmd(
    network: Path = typer.Option(..., exists=True, dir_okay=False, help="Network JSON: nx, nh, ny, weights[, transform]"),
    inputs: Path = typer.Option(..., exists=True, dir_okay=False, help="Headerless CSV, one input vector per row"),
    expected: Path = typer.Option(..., exists=True, dir_okay=False, help="Headerless CSV, expected ny outputs per row"),
    tol: float = typer.Option(1e-6, help="Maximum absolute error accepted"),
    dtype: str = typer.Option("float64", help="float32 or float64"),
    transform: str | None = typer.Option(None, help="Override transfer function: logistic, linear, tanh"),
    log_level: str = typer.Option("WARNING", help="Logging level"),
) -> None:
    """Compare network outputs with expected values; exit 1 when the error exceeds tol."""

    try:
        cfg = RunConfig(dtype=dtype, transform=transform, log_level=log_level, tol=tol)
        setup_logging(cfg.level)
        evaluator = _load_evaluator(network, cfg)
        result = verify(
            evaluator,
            read_vectors(inputs, dtype=cfg.np_dtype),
            read_vectors(expected),
        )
    except NnetError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(
        f"{evaluator.dims} network: {result.n_vectors} vectors, "
        f"max_error={result.max_error:.3e} (worst row {result.worst_index})"
    )
    if not result.passed(cfg.tol):
        typer.echo(f"FAIL: max_error exceeds tol={cfg.tol:g}")
        raise typer.Exit(code=1)
    typer.echo("OK")


@app.command("version")
def version() -> None:
    from . import __version__

    typer.echo(__version__)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
