"""
Built-in scaffold templates.

BASIC_TEMPLATE_SCAFFOLD is the starter app used by `gen from`; the dev
template backs gen_dev and carries a fixed sample progenitor so a freshly
generated dev chain already belongs to a lineage someone else started.
"""

from __future__ import annotations

import base64
import json

from .scaffold import SCAFFOLD_VERSION

SAMPLE_PROGENITOR_IDENTITY = "Progenitor Agent <progenitore@example.com>"
SAMPLE_PROGENITOR_PUB_KEY = bytes([
    193, 43, 31, 148, 23, 249, 163, 154, 128, 25, 237, 167, 253, 63, 214, 220,
    206, 131, 217, 74, 168, 30, 215, 237, 231, 160, 69, 89, 48, 17, 104, 210,
])

_UI_INDEX = """<html>
  <head>
    <title>Sample App</title>
    <script type="text/javascript" src="hc.js"></script>
  </head>
  <body>
    <h1>Sample App</h1>
    <div id="entries"></div>
  </body>
</html>
"""

_UI_HC_JS = """function send(fn, data, resultFn) {
  var xhr = new XMLHttpRequest();
  xhr.open("POST", "/fn/" + fn, true);
  xhr.setRequestHeader("Content-Type", "application/json");
  xhr.onreadystatechange = function () {
    if (xhr.readyState == 4 && xhr.status == 200) {
      resultFn(xhr.responseText);
    }
  };
  xhr.send(data);
}
"""

_SAMPLE_ZOME_JS = """function sampleEntryCreate(entry) {
  return commit("sampleEntry", entry);
}

function sampleEntryRead(hash) {
  return get(hash);
}

function genesis() {
  return true;
}

function validateCommit(entryName, entry, header, pkg, sources) {
  return true;
}

function validatePut(entryName, entry, header, pkg, sources) {
  return true;
}
"""

_SAMPLE_ZOME_ZY = """(defn addProfile [profile] (commit "profile" profile))
(defn getProfile [hash] (get hash))
(defn genesis [] true)
(defn validateCommit [entryName entry header pkg sources] true)
(defn validatePut [entryName entry header pkg sources] true)
"""

_PROPERTIES_SCHEMA = json.dumps({
    "title": "Properties Schema",
    "type": "object",
    "properties": {
        "description": {"type": "string"},
        "language": {"type": "string"},
    },
})


def _entry_schema(title: str, props: dict) -> str:
    return json.dumps({
        "title": f"{title} Schema",
        "type": "object",
        "properties": props,
        "required": sorted(props),
    })


BASIC_TEMPLATE = {
    "scaffold_version": SCAFFOLD_VERSION,
    "generator": "holoservice",
    "dna": {
        "version": 1,
        "name": "templateApp",
        "properties": {"description": "provides an application template", "language": "en"},
        "properties_schema": _PROPERTIES_SCHEMA,
        "dht_config": {"hash_type": "sha2-256"},
        "zomes": [
            {
                "name": "sampleZome",
                "description": "this is a zome that provides sample entries",
                "ribosome_type": "js",
                "code": _SAMPLE_ZOME_JS,
                "entries": [
                    {
                        "name": "sampleEntry",
                        "data_format": "json",
                        "schema": _entry_schema("sampleEntry", {
                            "content": {"type": "string"},
                            "timestamp": {"type": "integer"},
                        }),
                        "sharing": "public",
                    }
                ],
                "functions": [
                    {"name": "sampleEntryCreate", "calling_type": "json", "exposure": "public"},
                    {"name": "sampleEntryRead", "calling_type": "json", "exposure": "public"},
                ],
            }
        ],
    },
    "test_sets": [
        {
            "name": "sample",
            "tests": [
                {
                    "convey": "we can create a new sampleEntry",
                    "zome": "sampleZome",
                    "fn_name": "sampleEntryCreate",
                    "input": {"content": "this is the entry body", "timestamp": 12345},
                    "output": "%h1%",
                    "exposure": "public",
                }
            ],
        }
    ],
    "ui": [
        {"file_name": "index.html", "data": _UI_INDEX},
        {"file_name": "hc.js", "data": _UI_HC_JS},
    ],
    "scenarios": [
        {
            "name": "sampleScenario",
            "roles": [
                {
                    "name": "speaker",
                    "tests": [
                        {
                            "convey": "speaker posts an entry",
                            "zome": "sampleZome",
                            "fn_name": "sampleEntryCreate",
                            "input": {"content": "hello", "timestamp": 1},
                            "output": "%h1%",
                        }
                    ],
                },
                {
                    "name": "listener",
                    "tests": [
                        {
                            "convey": "listener reads the entry",
                            "zome": "sampleZome",
                            "fn_name": "sampleEntryRead",
                            "input": "%dna%",
                            "time": 3,
                        }
                    ],
                },
            ],
            "config": {"duration": 5, "game_master_files": []},
        }
    ],
}


DEV_TEMPLATE = {
    "scaffold_version": SCAFFOLD_VERSION,
    "generator": "holoservice-dev",
    "dna": {
        "version": 1,
        "name": "devApp",
        "properties": {"description": "a bogus test holochain", "language": "en"},
        "properties_schema": _PROPERTIES_SCHEMA,
        "dht_config": {"hash_type": "sha2-256"},
        "progenitor": {
            "identity": SAMPLE_PROGENITOR_IDENTITY,
            "pub_key": base64.b64encode(SAMPLE_PROGENITOR_PUB_KEY).decode("ascii"),
        },
        "zomes": [
            {
                "name": "zySampleZome",
                "description": "this is a zygomas test zome",
                "ribosome_type": "zygo",
                "code": _SAMPLE_ZOME_ZY,
                "entries": [
                    {
                        "name": "profile",
                        "data_format": "json",
                        "schema": _entry_schema("Profile", {
                            "firstName": {"type": "string"},
                            "lastName": {"type": "string"},
                            "age": {"type": "integer", "minimum": 0},
                        }),
                        "sharing": "public",
                    },
                    {"name": "evenNumbers", "data_format": "zygo", "sharing": "public"},
                ],
                "functions": [
                    {"name": "addProfile", "calling_type": "json", "exposure": "public"},
                    {"name": "getProfile", "calling_type": "json", "exposure": "public"},
                ],
            }
        ],
    },
    "test_sets": [
        {
            "name": "testSet1",
            "tests": [
                {
                    "convey": "we can add a profile",
                    "zome": "zySampleZome",
                    "fn_name": "addProfile",
                    "input": {"firstName": "Art", "lastName": "Brock", "age": 40},
                    "output": "%h1%",
                    "exposure": "public",
                }
            ],
        }
    ],
    "ui": [
        {"file_name": "index.html", "data": _UI_INDEX},
        {"file_name": "hc.js", "data": _UI_HC_JS},
    ],
    "scenarios": [
        {
            "name": "sampleScenario",
            "roles": [
                {
                    "name": "speaker",
                    "tests": [
                        {
                            "convey": "speaker adds a profile",
                            "zome": "zySampleZome",
                            "fn_name": "addProfile",
                            "input": {"firstName": "Fred", "lastName": "Flintstone", "age": 35},
                        }
                    ],
                },
                {
                    "name": "listener",
                    "tests": [
                        {
                            "convey": "listener waits for the profile",
                            "zome": "zySampleZome",
                            "fn_name": "getProfile",
                            "input": "%h1%",
                            "time": 3,
                        }
                    ],
                },
            ],
            "config": {"duration": 5, "game_master_files": []},
        }
    ],
}

BASIC_TEMPLATE_SCAFFOLD = json.dumps(BASIC_TEMPLATE, indent=2)
DEV_TEMPLATE_SCAFFOLD = json.dumps(DEV_TEMPLATE, indent=2)
