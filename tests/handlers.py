CALLS: list[tuple[str, tuple[str, ...]]] = []

NOT_CALLABLE = "ping"


def ping(message, *args):
    CALLS.append(("ping", args))


async def shutdown(message, *args):
    CALLS.append(("shutdown", args))
