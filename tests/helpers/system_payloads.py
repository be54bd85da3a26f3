from __future__ import annotations

from typing import Any


def flat_tetrad_payload() -> dict[str, Any]:
    return {
        "name": "tetrad",
        "coherenceAttribute": "Activity",
        "nodes": [1, 2, 3, 4],
        "edges": [
            {"from": 1, "to": 2},
            {"from": 1, "to": 3},
            {"from": 1, "to": 4},
            {"from": 2, "to": 3},
            {"from": 2, "to": 4},
            {"from": 3, "to": 4},
        ],
        "points": [
            {"x": 0.0, "y": 1.0, "z": 0.0},
            {"x": 1.0, "y": 0.0, "z": 0.0},
            {"x": -1.0, "y": 0.0, "z": 0.0},
            {"x": 0.0, "y": -1.0, "z": 0.0},
        ],
        "termCharacters": [
            {"name": "Ideal", "index": 1, "hexColor": "#111111"},
            {"name": "Directive", "index": 2},
            {"name": "Instrumental", "index": 3},
            {"name": "Ground", "index": 4},
        ],
        "connectiveCharacters": [
            {"name": "Motivation", "fromTerm": "Ideal", "toTerm": "Ground"},
            {"name": "Application", "fromTerm": "Directive", "toTerm": "Instrumental"},
        ],
        "navigationEdges": [],
    }


def positional_triad_payload() -> dict[str, Any]:
    return {
        "name": "Triad",
        "order": 3,
        "coherence": "Dynamism",
        "terms": [
            {"position": 3, "character": {"value": "Reconciling"}},
            {"position": 1, "character": {"value": "Affirming"}},
            {"position": 2, "character": {"value": "Receptive"}},
        ],
        "coordinates": [
            {"position": 1, "x": 0.0, "y": 1.0, "z": 0.0},
            {"position": 2, "x": -1.0, "y": -1.0, "z": 0.0},
            {"position": 3, "x": 1.0, "y": -1.0, "z": 0.0},
        ],
        "colours": [{"position": 2, "value": "#222222"}],
        "links": [
            {"basePosition": 1, "targetPosition": 2, "linkType": "LINE"},
            {"basePosition": 2, "targetPosition": 3, "linkType": "LINE"},
            {"basePosition": 3, "targetPosition": 1, "linkType": "LINE"},
            {
                "basePosition": 1,
                "targetPosition": 3,
                "linkType": "CONNECTIVE",
                "character": {"value": "Will"},
            },
        ],
    }


def slices_dyad_payload() -> dict[str, Any]:
    return {
        "name": "dyad",
        "order": 2,
        "slices": [
            {
                "position": 1,
                "term": {"character": {"value": "Essence"}},
                "coordinate": {"x": -1.0, "y": 0.0},
            },
            {
                "position": 2,
                "term": {"character": {"value": "Existence"}},
                "coordinate": {"x": 1.0, "y": 0.0},
                "colour": {"value": "#333333"},
            },
        ],
    }


def legacy_pentad_payload() -> dict[str, Any]:
    return {
        "geometry": {
            "system_name": "pentad",
            "node_count": 5,
            "edges": [[1, 2], [2, 3], [3, 4], [4, 5], [5, 1]],
        },
        "vocabulary": {
            "display_name": "Pentad",
            "k_notation": "K5",
            "description": "Significance",
            "term_characters": ["Purpose", "Higher", "Quintessence", "Lower", "Source"],
            "connective_characters": [
                {"label": "Aspiration", "from_term": "Source", "to_term": "Purpose"}
            ],
        },
    }
