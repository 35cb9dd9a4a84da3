class Secret:
    """
    Holds a credential in a mutable buffer that can be overwritten after use.

    Python strings cannot be zeroed, so this is best effort: the bytes held
    here are wiped, copies handed out by `reveal()` are not.
    """

    def __init__(self, value: str):
        self._buffer = bytearray(value.encode("utf-8"))

    def reveal(self) -> str:
        return self._buffer.decode("utf-8")

    def wipe(self) -> None:
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._buffer = bytearray()

    @property
    def wiped(self) -> bool:
        return not any(self._buffer)

    def __bool__(self) -> bool:
        return not self.wiped

    def __enter__(self) -> "Secret":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self) -> str:
        return "Secret('**********')"

    __str__ = __repr__
