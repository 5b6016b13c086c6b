"""Release glue: version stamping and publishing of the generated distributions."""
