"""jspm-resolve - Resolve module specifiers from the command line.

    Returns:
        int: Exit code
"""
import asyncio
import json
import logging
import sys

from args import parse_args
from cli_config import apply_resolver_overrides, build_env, load_settings
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes
from resolution import DirectoryCache, ErrorCode, ResolveError, resolve, resolve_sync

_ERROR_EXIT_CODES = {
    ErrorCode.MODULE_NOT_FOUND: ExitCodes.MODULE_NOT_FOUND,
    ErrorCode.INVALID_MODULE_NAME: ExitCodes.INVALID_MODULE_NAME,
    ErrorCode.INVALID_CONFIGURATION: ExitCodes.INVALID_CONFIGURATION,
}


def _record(specifier, result=None, error=None):
    if error is not None:
        return {"specifier": specifier, "error": {"code": error.code, "message": error.message}}
    return {"specifier": specifier, **result.to_dict()}


def resolve_all(specifiers, parent, env, cjs, use_async=False):
    """Resolve every specifier with one shared cache.

    Args:
        specifiers (list): Specifiers to resolve.
        parent (str): Referencing location, or None for the working directory.
        env (dict): Environment condition overrides.
        cjs (bool): Report CommonJS loader formats.
        use_async (bool): Use the asyncio resolver.

    Returns:
        list: (specifier, ResolvedModule or None, ResolveError or None) tuples.
    """
    cache = DirectoryCache()
    outcomes = []
    if use_async:
        async def _run():
            for specifier in specifiers:
                try:
                    result = await resolve(specifier, parent, env=env, cache=cache, cjs_resolve=cjs)
                    outcomes.append((specifier, result, None))
                except ResolveError as e:
                    outcomes.append((specifier, None, e))
        asyncio.run(_run())
    else:
        for specifier in specifiers:
            try:
                outcomes.append((specifier, resolve_sync(specifier, parent, env=env, cache=cache, cjs_resolve=cjs), None))
            except ResolveError as e:
                outcomes.append((specifier, None, e))
    return outcomes


def main(argv=None):
    """Main function of the program."""
    logger = logging.getLogger(__name__)

    args = parse_args(argv)
    load_settings(args)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)
    apply_resolver_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main", count=len(args.specifiers))
        )

    try:
        outcomes = resolve_all(args.specifiers, args.PARENT, build_env(args), args.CJS, args.ASYNC)
    except OSError as e:
        logging.error("Filesystem error while resolving: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    exit_code = ExitCodes.SUCCESS
    for specifier, result, error in outcomes:
        print(json.dumps(_record(specifier, result, error), ensure_ascii=False))
        if error is not None:
            logging.warning("Unable to resolve %s: %s", specifier, error.message)
            if exit_code is ExitCodes.SUCCESS:
                exit_code = _ERROR_EXIT_CODES[error.kind]

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(event="function_exit", component="cli", action="main", outcome=exit_code.name.lower())
        )
    sys.exit(exit_code.value)


if __name__ == "__main__":
    main()
