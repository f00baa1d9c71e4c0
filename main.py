from rich.pretty import pprint

from flagtree import *


@command("serve", Flag("port", "listen port", FlagType.INT).short("p").default_value(FlagValue.Int(8000)), aliases=("s",))
def serve(context):
    """
    start the development server
    """
    pprint(context)


@command
def show_config(context):
    """
    print the resolved flags
    """
    for name, value in context.items():
        pprint((name, value))


app = (
    App("demo", "flagtree demo program", version="0.0.0")
    .flag(Flag("verbose", "print more", FlagType.BOOL).short("v"))
    .command(serve, show_config)
)


if __name__ == '__main__':
    raise SystemExit(app.main())
