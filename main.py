import asyncio

from rich.pretty import pprint

from navarch import *
from navarch import logs

__prog__ = "navarch-demo"

app = create_app_category({
    "inherited": {
        "options": {
            "verbose": {"alias": "v", "count": True, "description": "Increases how much logging to display"},
            "quiet": {"alias": "q", "count": True, "description": "Decreases how much logging to display"},
        },
    },
    "parsed": lambda arguments: logs.install(arguments["verbose"] - arguments["quiet"]),
})

cloud = create_category(app, "cloud", "Access cloud functionality")

create_command(cloud, "flash", "Pass a binary, source file, or source directory to a device", {
    "params": "<device> [files...]",
    "options": {
        "target": {"alias": "t", "description": "The firmware version to compile against"},
        "yes": {"boolean": True, "description": "Answer yes to all questions"},
    },
    "examples": {
        "$0 $command my_device application.bin": "Flash a binary to a device",
    },
    "handler": lambda arguments: pprint({"params": arguments.params, "target": arguments.get("target")}),
})

create_command(cloud, "list", "Display a list of your devices", {
    "alias": "ls",
    "params": "[filter]",
    "handler": lambda arguments: pprint(arguments.params),
})


if __name__ == '__main__':
    arguments = parse(app)
    if arguments.clierror:
        create_error_handler(usage=arguments.usage)(arguments.clierror)
    try:
        asyncio.run(arguments.clicommand.exec(arguments))
    except Exception as error:
        create_error_handler()(error)
