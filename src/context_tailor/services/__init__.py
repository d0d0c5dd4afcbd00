"""Pipeline components and the adapters they depend on."""
