"""HireHub recruitment API."""
