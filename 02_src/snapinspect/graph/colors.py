"""Stable per-process colors."""


def _rolling_hash(text: str) -> int:
    value = 0
    for char in text:
        value = (ord(char) + ((value << 5) - value)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


class ProcessColorCache:
    """Memoized process name -> HSL color.

    The color is a pure function of the name; the cache only saves
    recomputation and can be reset at any time.
    """

    def __init__(self, saturation: int = 65, lightness: int = 55):
        self._saturation = saturation
        self._lightness = lightness
        self._colors: dict[str, str] = {}

    def color_for(self, process: str) -> str:
        color = self._colors.get(process)
        if color is None:
            hue = _rolling_hash(process) % 360
            color = f"hsl({hue}, {self._saturation}%, {self._lightness}%)"
            self._colors[process] = color
        return color

    def reset(self) -> None:
        self._colors.clear()

    def __len__(self) -> int:
        return len(self._colors)
