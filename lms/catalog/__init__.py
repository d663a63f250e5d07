"""Classes, modules, module items and assessments."""
