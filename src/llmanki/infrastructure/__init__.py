"""Infrastructure: persistence and collection loading."""
