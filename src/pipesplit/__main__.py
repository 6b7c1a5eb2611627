"""Run a project file: python -m pipesplit project.yaml"""
import sys

from pipesplit.config.errors import ConfigError
from pipesplit.core.logging_setup import get_logger
from pipesplit.driver import run_project
from pipesplit.errors import PipeSplitError

logger = get_logger("pipesplit")


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("usage: python -m pipesplit PROJECT.yaml", file=sys.stderr)
        return 2
    try:
        run_project(argv[0])
    except (ConfigError, PipeSplitError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
