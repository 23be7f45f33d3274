"""CLI commands for RandQA."""

from __future__ import annotations

import argparse
import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import Any

from randqa.agent import RandomizedTest
from randqa.config import EngineSettings, load_settings
from randqa.errors import ConfigurationError, TestFailedError
from randqa.reporters.console import ConsoleReporter

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def _positive_int(value: str) -> int:
    """Validate an option is a positive integer."""
    try:
        i = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if i <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {i}")
    return i


def _non_negative_int(value: str) -> int:
    try:
        i = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if i < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {i}")
    return i


def main(args: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="randqa",
        description="RandQA - model-based randomized testing",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Run a randomized test")
    run_parser.add_argument("test_file", help="Python file defining a RandomizedTest")
    run_parser.add_argument("--steps", "-n", type=_positive_int, help="Number of counted steps")
    run_parser.add_argument("--seed", "-s", type=int, help="Random seed (default: 0)")
    run_parser.add_argument("--log", choices=["simple", "detailed"], dest="log_strategy", help="Log strategy")
    run_parser.add_argument("--buffer", type=_non_negative_int, dest="log_buffer", help="Log buffer length")
    run_parser.add_argument("--config", "-c", help="YAML settings file")
    run_parser.add_argument("--verbose", "-v", action="store_true", default=False, help="Log every step")

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Check action registration without running")
    validate_parser.add_argument("test_file", help="Python file defining a RandomizedTest")
    validate_parser.add_argument("--config", "-c", help="YAML settings file")

    parsed = parser.parse_args(args)

    if parsed.command == "run":
        return cmd_run(parsed)
    elif parsed.command == "validate":
        return cmd_validate(parsed)
    else:
        parser.print_help()
        return EXIT_FAILED


def cmd_run(args: Any) -> int:
    """Run a randomized test and report the outcome."""
    try:
        settings = load_settings(
            args.config,
            steps=args.steps,
            seed=args.seed,
            log_strategy=args.log_strategy,
            log_buffer=args.log_buffer,
        )
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        test = build_test(args.test_file, settings)
    except ConfigurationError as e:
        print(e.format_verbose(), file=sys.stderr)
        return EXIT_ERROR

    reporter = ConsoleReporter()
    try:
        result = test.run()
    except TestFailedError as e:
        reporter.report_failure(e)
        return EXIT_FAILED
    except ConfigurationError as e:
        print(e.format_verbose(), file=sys.stderr)
        return EXIT_ERROR

    reporter.report(result)
    return EXIT_OK


def cmd_validate(args: Any) -> int:
    """Construct the test, which validates every registration."""
    try:
        settings = load_settings(args.config)
        test = build_test(args.test_file, settings)
    except ConfigurationError as e:
        print(e.format_verbose(), file=sys.stderr)
        return EXIT_ERROR

    print(f"Test '{type(test).__name__}' is valid")
    print(f"  Actions: {len(test.registry)}")
    for a in test.registry:
        params = ", ".join(a.params) or "-"
        produces = ", ".join(a.produces) or "-"
        weights = ", ".join(f"{w:g}" for w in a.weights)
        print(f"    {a.name}: weights=[{weights}] params=[{params}] produces=[{produces}]")
    print(f"  Pools: {', '.join(sorted(test.get_pool_names()))}")
    print(f"  Invariant checks: {len(test.invariants)}")
    print(f"  Phases: {test.number_of_phases}")
    return EXIT_OK


def build_test(path: str, settings: EngineSettings) -> RandomizedTest:
    """Load ``path`` and construct the randomized test it defines.

    Looks for a module attribute ``test`` (an instance, or a factory that
    accepts ``settings``), then for RandomizedTest subclasses defined in
    the file, instantiated with ``settings``.
    """
    module = load_module(path)

    if hasattr(module, "test"):
        candidate = module.test
        if isinstance(candidate, RandomizedTest):
            return candidate
        if callable(candidate):
            if "settings" in inspect.signature(candidate).parameters:
                built = _construct(candidate, path, settings=settings)
            else:
                built = _construct(candidate, path)
            if isinstance(built, RandomizedTest):
                return built
        raise ConfigurationError(f"'test' in {path} is not a RandomizedTest or a factory returning one")

    for obj in list(vars(module).values()):
        if (
            inspect.isclass(obj)
            and issubclass(obj, RandomizedTest)
            and obj is not RandomizedTest
            and obj.__module__ == module.__name__
        ):
            return _construct(obj, path, settings=settings)

    raise ConfigurationError(f"No RandomizedTest found in {path}")


def load_module(path: str) -> Any:
    """Import a Python file as a module."""
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Test file not found: {path}")

    spec = importlib.util.spec_from_file_location(f"randqa_test_{p.stem}", p)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Could not load test file: {path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Could not import test file {path}: {e!r}", cause=e) from e
    return module


def _construct(factory: Any, path: str, **kwargs: Any) -> Any:
    """Call a test class or factory, reporting its errors as loading errors."""
    try:
        return factory(**kwargs)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Could not construct the test defined in {path}: {e!r}", cause=e) from e


def cli() -> None:
    """Entry point for console script."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
