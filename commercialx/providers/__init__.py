"""External vehicle data providers (NHTSA vPIC, EPA)."""
