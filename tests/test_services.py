"""Service modules whose classes expose a ``list`` operation."""

import importlib

import pytest

LISTING_SERVICES = [
    ("halosuite.services.calendar_service", "CalendarService"),
    ("halosuite.services.document_service", "DocumentService"),
    ("halosuite.services.file_service", "FileService"),
    ("halosuite.services.folder_service", "FolderService"),
    ("halosuite.services.notification_service", "NotificationService"),
    ("halosuite.services.team_service", "TeamService"),
]


@pytest.mark.parametrize(("module_name", "class_name"), LISTING_SERVICES)
def test_service_with_list_method_imports(module_name: str, class_name: str) -> None:
    module = importlib.import_module(module_name)
    service_class = getattr(module, class_name)
    assert callable(service_class.list)
    # Annotations stay as text, so a later ``list[...]`` never resolves to the method
    for member in vars(service_class).values():
        for annotation in getattr(member, "__annotations__", {}).values():
            assert isinstance(annotation, str)
