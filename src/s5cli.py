from typing import Annotated, Optional
import logging
import typer
from typer import Option, Argument
from typer_di import TyperDI, Depends
from pathlib import Path

from s5fs.filesystem import Filesystem, default_max_depth
from s5fs.errors import S5Error, UsageError, OpenError, CreateError, ShortReadError


logging.basicConfig(level=logging.WARN)

app = TyperDI()

_exit_codes = {
    UsageError: 2,
    OpenError: 3,
    CreateError: 4,
    ShortReadError: 5,
}


def get_image_path(image: Annotated[Path, Argument(help="raw disk or partition image")]) -> Path:
    return image

def get_partition(partition: Annotated[int, Argument(min=0, help="index into the partition table")]) -> int:
    return partition

def get_inode(inode: Annotated[int, Argument(min=1, help="starting inode, 2 is the root directory")]) -> int:
    return inode

def get_output(target: Annotated[Path, Option("--output", "-o")] = Path('dump')) -> Path:
    return target

def get_base(base: Annotated[Optional[str], Option("--base", help="partition base offset, overrides the table")] = None) -> Optional[int]:
    if base is None:
        return None
    try:
        return int(base, 0)
    except ValueError:
        raise typer.BadParameter(f"not an offset: {base}", param_hint="--base")

def get_verbose(verbose: Annotated[int, Option("--verbose", "-v", count=True)] = 0) -> int:
    return verbose


def exit_code(e: S5Error) -> int:
    return next((code for kls, code in _exit_codes.items() if isinstance(e, kls)), 1)


@app.command()
def extract(
        image: Path = Depends(get_image_path),
        partition: int = Depends(get_partition),
        inode: int = Depends(get_inode),
        output: Path = Depends(get_output),
        base: Optional[int] = Depends(get_base),
        max_depth: int = default_max_depth,
        keep_going: Annotated[bool, Option("--keep-going", "-k")] = False,
        verbose: int = Depends(get_verbose),
    ):
    """
    Dump the S5 tree below INODE of partition PARTITION in IMAGE to OUTPUT/root.

    Permissions, owners and times are not restored, device nodes are skipped
    and triple indirect blocks are not followed.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG if verbose > 1 else logging.INFO)

    try:
        with Filesystem.from_file(image, partition, base, max_depth=max_depth, strict=not keep_going) as fs:
            report = fs.extract(inode, output)
    except S5Error as e:
        print(f"{e.operation} failed: {e}")
        raise typer.Exit(exit_code(e))

    for node in report.nodes:
        print(node)
    for skipped in report.skipped:
        print(f"skipped {skipped}")
    for err in report.errors:
        print(f"error {err}")
    print(report)


if __name__ == "__main__":
    app()
