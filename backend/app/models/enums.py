from enum import StrEnum

class Tab(StrEnum):
    SWISS = "swiss"
    PLAYOFFS = "playoffs"

class Side(StrEnum):
    A = "A"
    B = "B"
