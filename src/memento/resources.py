"""Client-facing message templates."""

CONTROLLER_CREATE_SUCCESSFUL = "The {entity} was created successfully."
CONTROLLER_UPDATE_SUCCESSFUL = "The {entity} was updated successfully."
CONTROLLER_DELETE_SUCCESSFUL = "The {entity} was deleted successfully."
CONTROLLER_GET_SUCCESSFUL = "The {entity} was retrieved successfully."
CONTROLLER_GET_ALL_SUCCESSFUL = "The {entities} were retrieved successfully."

ERROR_UNEXPECTED = "An unexpected error has occurred."
ERROR_VALIDATION = "The request is invalid."
ERROR_NOT_FOUND = "The {entity} does not exist."
ERROR_INVALID_FIELD = "The field '{field}' is invalid."
ERROR_FIELD_TOO_LONG = "The field '{field}' must have at most {length} characters."
ERROR_REQUIRED_FIELD = "The field '{field}' is required."
ERROR_DUPLICATE_FIELD = "There is already an entity with the same '{field}'."
ERROR_DUPLICATE_FIELD_COMBINATION = "There is already an entity with the same {fields}."
ERROR_ENTITY_IN_USE = "The {entity} cannot be deleted because it is still referenced."


def join_field_names(names) -> str:
    """Render ['A', 'B', 'C'] as "'A', 'B' and 'C'"."""
    names = [f"'{name}'" for name in names]
    if len(names) == 1:
        return names[0]
    return ", ".join(names[:-1]) + f" and {names[-1]}"
