"""Host resources managed by wpstack."""
