"""proxypull — image reference rewriting for registry proxies.

Parse ``docker pull`` image references and render the pull command, registry
API v2 URLs and verification commands for a registry proxy host.
"""

import logging

from proxypull._version import __version__
from proxypull.image_parser import (
    EmptyImageReferenceError,
    ImageReferenceError,
    InvalidImageNameError,
    parse_image_reference,
)
from proxypull.models import ImageReference, OutputBundle
from proxypull.synthesizer import ConfigurationError, synthesize

__all__ = [
    "ConfigurationError",
    "EmptyImageReferenceError",
    "ImageReference",
    "ImageReferenceError",
    "InvalidImageNameError",
    "OutputBundle",
    "__version__",
    "parse_image_reference",
    "synthesize",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
