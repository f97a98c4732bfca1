"""CustomTkinter desktop front-end for the Civic Portal client."""
