"""Business logic services for postcanvas."""

from postcanvas.services.design import DesignService, EditingSession
from postcanvas.services.export import ExportResult, ExportService, ExportSink, PillowExportSink
from postcanvas.services.generation import HttpImageGenerator, ImageGenerator
from postcanvas.services.resize import resize_document
from postcanvas.services.templates import InMemoryTemplateProvider, TemplateProvider

__all__ = [
    "DesignService",
    "EditingSession",
    "ExportResult",
    "ExportService",
    "ExportSink",
    "HttpImageGenerator",
    "ImageGenerator",
    "InMemoryTemplateProvider",
    "PillowExportSink",
    "TemplateProvider",
    "resize_document",
]
