from __future__ import annotations

import json

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from sheetsifter.config.loader import SCHEMA_PATH

"""Config schema contract: bundled reconcile_schema.json."""


@pytest.fixture()
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_config_schema_valid_example(schema, sample_config_yaml):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), schema)


def test_config_schema_accepts_null_threshold(schema, sample_config_yaml):
    config = yaml.safe_load(sample_config_yaml)
    config["filter_threshold"] = None
    jsonschema.validate(config, schema)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda c: c.pop("files"),
        lambda c: c.update(files=[]),
        lambda c: c["files"][0]["worksheets"][0].update(header_row=0),
        lambda c: c["files"][0]["worksheets"][0]["selections"][0].update(data_type="money"),
        lambda c: c["payment"].update(currency="BRL"),
        lambda c: c.update(filter_threshold="5"),
    ],
    ids=["no-files", "empty-files", "header-row-zero", "bad-data-type", "payment-extra-key", "string-threshold"],
)
def test_config_schema_rejects(schema, sample_config_yaml, mutate):
    config = yaml.safe_load(sample_config_yaml)
    mutate(config)
    with pytest.raises(ValidationError):
        jsonschema.validate(config, schema)
