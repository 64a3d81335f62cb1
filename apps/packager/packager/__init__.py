"""Project packager: bundles an sb3 project into a standalone HTML file or ZIP."""
