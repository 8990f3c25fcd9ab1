"""Static rules reference data: enumerations, fixed tables and the YAML catalogs."""
