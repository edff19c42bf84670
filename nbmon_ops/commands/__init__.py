"""Operations: one module per command family."""
