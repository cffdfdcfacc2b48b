# Versioned application routes live in v1/; operational endpoints sit at the top level
