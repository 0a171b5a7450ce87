"""Static reference data for the simulated market."""
