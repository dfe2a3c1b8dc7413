"""
__main__ provides the console-script entrypoint for the emovec package.
"""
from __future__ import annotations

import sys
import traceback

from emovec.cli import CLI
from emovec.command import CompareCommand, EmbedCommand, IndexCommand, SearchCommand
from emovec.console import logger
from emovec.engine import EmbeddingEngine
from emovec.errors import EmovecError
from emovec.runner import Runner


def main(argv: list[str] | None = None) -> None:
    """
    main is the entrypoint for the `emovec` console script.
    """
    try:
        command = CLI().parse_command(argv)
        runner = Runner(EmbeddingEngine(command.engine))

        match command:
            case EmbedCommand() as c:
                runner.embed(c)
            case CompareCommand() as c:
                runner.compare(c)
            case IndexCommand() as c:
                runner.index(c)
            case SearchCommand() as c:
                runner.search(c)
            case _:
                raise ValueError(f"Invalid command payload: {type(command)!r}")
    except SystemExit as e:
        code = int(e.code) if isinstance(e.code, int) else 1
        if code == 0:
            raise
        sys.exit(code)
    except (EmovecError, ValueError) as e:
        logger.error(f"error: {e}")
        sys.exit(1)
    except RuntimeError as e:
        logger.error(f"runtime error while running emovec: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"unexpected error: {type(e).__name__}: {e}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
