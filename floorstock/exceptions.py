class FloorstockError(Exception):
    pass


class SheetNotFound(FloorstockError):
    def __init__(self, name):
        super().__init__(f"Sheet not found: {name}")
        self.name = name


class ItemNotFound(FloorstockError):
    def __init__(self, name):
        super().__init__(f"Item not found: {name}")
        self.name = name


class SheetRequestError(FloorstockError):
    """Raised when the sheet endpoint cannot be reached or answers garbage."""
