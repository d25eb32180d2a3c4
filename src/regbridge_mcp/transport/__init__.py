"""Host-side links to a slave device."""

from .byte_link import ByteLink
