# errors.py


class InventoryError(Exception):
    """Base class for everything the inventory service raises on purpose."""


class InvalidName(InventoryError):
    """Empty or whitespace-only item name."""

    def __init__(self, name):
        super().__init__(f"Invalid item name: {name!r}")
        self.name = name


class StoreUnavailable(InventoryError):
    """A read, write, list or delete against the inventory store failed."""


class ModelNotReady(InventoryError):
    """Detection was requested before the model finished loading."""


class DecodeFailure(InventoryError):
    """Supplied image data could not be decoded."""


class CameraUnavailable(InventoryError):
    """No frame could be read from the camera."""
