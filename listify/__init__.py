"""Property Listify location routing backend."""
