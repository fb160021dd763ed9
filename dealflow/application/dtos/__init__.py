"""Application DTOs: immutable results passed between layers (no ORM)."""
