from catalog_pipeline.models.record import (
    CanonicalRecord,
    Quantity,
    RawRecord,
    frame_to_records,
    records_to_frame,
)

__all__ = ["CanonicalRecord", "Quantity", "RawRecord", "frame_to_records", "records_to_frame"]
