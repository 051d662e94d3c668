"""
prompt.py

Ask for missing capture parameters on the terminal.

Only fills the settings dict produced by config.load_config; validation is
left to CaptureConfig, so a value typed here is checked exactly like one from
the command line.
"""

from camtrap_capture.records import deployment_from_path, path_levels


def ask_number(message, choices=None, input_fn=input):
    """Read a whole number, asking again until the answer is valid."""
    while True:
        answer = input_fn(message).strip()
        if answer.isdigit() and (choices is None or int(answer) in choices):
            return int(answer)
        if choices is None:
            print("  Invalid input: please enter a valid number")
        else:
            print(f"  Invalid input: please enter one of {', '.join(str(c) for c in choices)}")


def fill_missing(settings, sample_path=None, has_deployment_column=False, input_fn=input):
    """
    Prompt for every required capture parameter that is not set yet.

    Args:
        settings: dict from load_config, updated in place
        sample_path: one path of the tags table, shown to pick the deployment level
        has_deployment_column: the table already has deployments, do not ask
        input_fn: replacement for input() (tests)

    Returns:
        settings
    """
    capture = settings.setdefault('capture', {})

    if capture.get('min_delta_time') is None:
        capture['min_delta_time'] = ask_number(
            "Input the Minimum Time Difference (when considering records as independent) "
            "in minutes (e.g. 30): ",
            input_fn=input_fn,
        )

    if capture.get('policy') is None:
        capture['policy'] = ask_number(
            "\nThe Minimum Time Difference should be compared with?\n"
            "1) Last independent record 2) Last record\nEnter a selection (e.g. 1): ",
            choices=(1, 2),
            input_fn=input_fn,
        )

    if capture.get('target') is None:
        capture['target'] = ask_number(
            "\nPerform analysis on\n1) species 2) individual\nEnter a selection: ",
            choices=(1, 2),
            input_fn=input_fn,
        )

    if capture.get('deployment_index') is None and not has_deployment_column and sample_path:
        levels = path_levels(sample_path)
        print(f"\nHere is a sample of the file path ({sample_path})")
        for index, segment in levels:
            print(f"{index}): {segment}")
        capture['deployment_index'] = ask_number(
            "Select the number corresponding to the deployment: ",
            choices=[index for index, _ in levels],
            input_fn=input_fn,
        )
        print(f"Deployment of the sample: {deployment_from_path(sample_path, capture['deployment_index'])}")

    return settings
