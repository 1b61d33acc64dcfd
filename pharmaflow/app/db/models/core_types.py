import enum


class ProcessStatus(str, enum.Enum):
    # Flat status set: any value may follow any other
    ordered = "ordered"
    preparing = "preparing"
    out_for_delivery = "out_for_delivery"
    in_transit = "in_transit"


class UpsertAction(str, enum.Enum):
    created = "created"
    updated = "updated"
    duplicate = "duplicate"
    rejected = "rejected"


class UpsertReason(str, enum.Enum):
    duplicate_in_batch = "duplicate_in_batch"
    duplicate_in_store = "duplicate_in_store"
    invalid = "invalid"
