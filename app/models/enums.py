from enum import IntEnum


class PayType(IntEnum):
    expense = 1
    saving = 2


class CommitmentCategory(IntEnum):
    emi = 1
    full = 2


class CommitmentStatus(IntEnum):
    ongoing = 1
    completed = 2
