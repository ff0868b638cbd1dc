from .records import CaregiverService, CaseService, RecordService, map_document

__all__ = ["CaregiverService", "CaseService", "RecordService", "map_document"]
