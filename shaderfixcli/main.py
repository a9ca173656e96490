from __future__ import annotations

import argparse
import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from libshaderfix.asm_reader import AsmReadError
from libshaderfix.asm_writer import AlreadyPatchedError, fix_shader
from libshaderfix.signature import RegisterNotFoundError
from libshaderfix.summary import summarize_listing

log = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def cmd_summary(path: str) -> int:
    s = summarize_listing(path)
    console.print(f"[bold]File:[/bold] {s.path}")
    console.print(f"[bold]Size:[/bold] {s.file_size} bytes")
    console.print(f"[bold]Temp registers:[/bold] {s.temp_reg_count}")
    if s.lightmap_register is None:
        console.print("[bold]Lightmap UV:[/bold] [red]TEXCOORD 1 not found[/red]")
    else:
        state = "[yellow]already patched[/yellow]" if s.patched else "[green]needs patch[/green]"
        console.print(f"[bold]Lightmap UV:[/bold] v{s.lightmap_register} ({state})")

    rt = Table(title="Regions")
    rt.add_column("Region")
    rt.add_column("Lines", justify="right")
    for name, n in s.region_lines.items():
        rt.add_row(name, str(n))
    console.print(rt)

    it = Table(title="Input signature")
    it.add_column("Name", overflow="fold")
    it.add_column("Index", justify="right")
    it.add_column("Mask", justify="center")
    it.add_column("Register", justify="right")
    if s.input_registers:
        for r in s.input_registers:
            it.add_row(r.name, str(r.index), r.mask, f"v{r.reg}")
    else:
        it.add_row("(none found)", "-", "-", "-")
    console.print(it)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="shaderfix",
        description="Shader-fixer is a DXBC assembly parser for D3D_SM50: "
        "rebuilds the packed lightmap UV (TEXCOORD 1) in a vertex shader listing.",
    )
    p.add_argument("input", help="input listing (input_file.asm)")
    p.add_argument("output", nargs="?", help="output listing (defaults to overwriting input)")
    p.add_argument("--dry-run", action="store_true", help="print what would be patched, write nothing")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if not os.path.isfile(args.input):
        err_console.print(f"Input file not found: {args.input}", markup=False, soft_wrap=True)
        return 1

    output = args.output or args.input
    try:
        if args.dry_run:
            return cmd_summary(args.input)

        with open(args.input, "r", encoding="utf-8", newline="") as f:
            content = f.read()
        try:
            processed = fix_shader(content)
        except AlreadyPatchedError as e:
            if os.path.abspath(output) == os.path.abspath(args.input):
                log.warning("%s, nothing written", e)
                return 0
            log.warning("%s, copied unchanged to %s", e, output)
            processed = content

        with open(output, "w", encoding="utf-8", newline="") as f:
            f.write(processed)
    except (AsmReadError, RegisterNotFoundError, UnicodeDecodeError, OSError) as e:
        err_console.print(f"Error: {e}", markup=False, highlight=False, soft_wrap=True)
        return 1

    console.print(f"[green]Shader processed successfully![/green] Output: {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
