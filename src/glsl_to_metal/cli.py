import argparse
import sys
from pathlib import Path

from .config import TranspilerConfig
from .errors import ShaderSourceUnavailable
from .logging import get_logger, setup_logging
from .transpiler import transpile_file


def main(argv=None):
    # --- CLI ---
    p = argparse.ArgumentParser(
        description="Transpile Shadertoy/Ghostty GLSL shaders to Metal"
    )
    p.add_argument("input", help="GLSL shader file")
    p.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write the Metal source here instead of stdout",
    )
    p.add_argument(
        "--function-name",
        type=str,
        default=None,
        help="Fragment function symbol (default: customPostProcess)",
    )
    p.add_argument(
        "--transitive-uniforms",
        action="store_true",
        help="Thread iResolution/iTime through multi-hop helper call chains",
    )
    p.add_argument(
        "--exact-mod",
        action="store_true",
        help="Emit an exact GLSL mod() helper instead of mapping to fmod()",
    )
    p.add_argument(
        "--flip-y",
        action="store_true",
        help="Use a bottom-left fragCoord origin like Shadertoy",
    )
    p.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Minimum log level (DEBUG, INFO, WARNING, ERROR)",
    )
    p.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Redirect logs to a file",
    )
    args = p.parse_args(argv)

    # --- config ---
    cfg = TranspilerConfig()
    if args.function_name:
        cfg.function_name = args.function_name
    cfg.transitive_uniforms = args.transitive_uniforms
    cfg.exact_mod = args.exact_mod
    cfg.flip_y = args.flip_y
    if args.log_level:
        cfg.log_level = args.log_level
    if args.log_file:
        cfg.log_file = args.log_file

    setup_logging(cfg.log_level, cfg.log_file)
    logger = get_logger(__name__)

    try:
        program = transpile_file(args.input, config=cfg)
    except ShaderSourceUnavailable as e:
        logger.error(f"Transpile skipped: {e}")
        return 1

    if args.output:
        Path(args.output).write_text(program.source, encoding="utf-8")
        logger.info(f"Wrote {program.entry_point} to {args.output}")
    else:
        sys.stdout.write(program.source)
    return 0


if __name__ == "__main__":
    sys.exit(main())
