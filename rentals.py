import sys

from rentals_lib.config import load_config
from rentals_lib.setup import parse_args, run_command


def main(argv=None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    if args.command != "serve":
        return run_command(args)

    import uvicorn
    from rentals_lib.main import create_app
    app = create_app(load_config(args.config))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
