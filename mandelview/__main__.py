import argparse
import logging

from . import config as defaults


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mandelview",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--size",
        type=int,
        nargs=2,
        default=list(defaults.DEFAULT_WINDOW_SIZE),
        help="The window (or image) dimensions, in pixels",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=defaults.DEFAULT_ITERATIONS,
        help="the starting max iterations",
    )
    parser.add_argument(
        "--precision-bits",
        type=int,
        default=defaults.PRECISION_BITS,
        help="working precision of the deep zoom reference orbit, in bits",
    )
    parser.add_argument(
        "--orbit-capacity",
        type=int,
        default=defaults.ORBIT_CAPACITY,
        help="max points kept in the reference orbit buffer",
    )
    parser.add_argument(
        "--escape-bound",
        type=float,
        default=defaults.ESCAPE_BOUND,
        help="bailout bound on the (doubled) reference orbit coordinates",
    )
    parser.add_argument(
        "--fp32",
        action="store_true",
        help="send single precision region uniforms instead of double",
    )
    parser.add_argument(
        "--deep",
        action="store_true",
        help="explore with the perturbation (deep zoom) renderer",
    )
    parser.add_argument(
        "--center",
        nargs=2,
        default=[defaults.DEFAULT_CENTER_RE, defaults.DEFAULT_CENTER_IM],
        metavar=("RE", "IM"),
        help="deep zoom centre as decimal strings",
    )
    parser.add_argument(
        "--zoom",
        type=float,
        default=defaults.DEFAULT_ZOOM,
        help="starting deep zoom scalar",
    )
    parser.add_argument(
        "--lock-select",
        action="store_true",
        help="lock selections to the window aspect unless shift is held",
    )
    parser.add_argument(
        "--color-seed",
        type=float,
        default=0.0,
        help="palette phase",
    )
    parser.add_argument(
        "--render",
        metavar="PATH",
        help="render a single frame to a PNG file instead of opening a window",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="log debug output",
    )
    return parser


def render_once(explorer_config):
    """Render the starting view without a window."""
    from .renderer import save_png
    from .viewer import Explorer

    explorer = Explorer(explorer_config)
    width, height = explorer_config.window_size
    snapshot = explorer.snapshot()
    save_png(explorer.compose_frame(snapshot, width, height), explorer_config.render_path)


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    explorer_config = defaults.ExplorerConfig.from_args(args)
    print(f"size: {explorer_config.window_size}")
    print(f"iterations: {explorer_config.iterations}")
    if explorer_config.deep:
        print(f"center: {explorer_config.center[0]} + {explorer_config.center[1]}i")
        print(f"precision: {explorer_config.precision_bits} bits")

    if explorer_config.render_path:
        render_once(explorer_config)
        return

    from .viewer import Explorer

    Explorer(explorer_config).run()


if __name__ == "__main__":
    main()
