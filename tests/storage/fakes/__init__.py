# Fake implementations for testing

from .fake_transport import FakeObjectTransport

__all__ = ["FakeObjectTransport"]
