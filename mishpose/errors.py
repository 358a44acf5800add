"""Exception types raised by mishpose."""


class MishposeError(Exception):
    """Base class for every error raised by this package."""


class EncodingError(MishposeError, ValueError):
    """The note collection handed to the MIDI encoder could not be read."""


class MusicXMLError(MishposeError, ValueError):
    """A MusicXML source could not be parsed into a Document."""


class RecognitionError(MishposeError):
    """A sheet music source could not be recognised."""
