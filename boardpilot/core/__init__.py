"""Resolution, mutation and orchestration core."""
