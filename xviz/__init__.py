"""XVIZ package -- metadata builder, topic converters and the metadata emitter."""
from xviz.builder import XVIZMetadataBuilder
from xviz.converters import CONVERTERS, Converter, ConverterRegistry
from xviz.metadata import build_metadata
