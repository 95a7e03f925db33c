"""Pure notification logic: no database, no Flask, no network."""
