from enum import Enum

class SplitType(str, Enum):
    EQUAL = "equal"
    EXACT = "exact"
    PERCENTAGE = "percentage"

class StoreBackend(str, Enum):
    MEMORY = "memory"
    MONGO = "mongo"
