# direction code -> route_code suffix
DIRECTION_SUFFIXES = {
    "G": "_G_D0",    # outbound (gidiş)
    "D": "_D_D0",    # inbound (dönüş)
    "R": "_D0",      # ring line, single direction
}


def make_route_code(line_code: str, direction: str) -> str:
    suffix = DIRECTION_SUFFIXES.get(direction.upper())
    if suffix is None:
        raise ValueError(f"Unknown direction code: {direction!r}")
    return f"{line_code}{suffix}"

