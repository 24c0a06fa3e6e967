import argparse
import json
import sys
from pathlib import Path

import requests


def get_siteinfo(domain, siprop):
    # https://www.mediawiki.org/wiki/API:Siteinfo
    params = {
        "action": "query",
        "format": "json",
        "meta": "siteinfo",
        "siprop": siprop,
        "formatversion": "2",
    }
    r = requests.get(f"https://{domain}/w/api.php", params=params)
    r.raise_for_status()
    return r.json()["query"]


def namespace_data(domain):
    """
    Local namespace names keyed by canonical name.  The result needs
    manual inspection because some sites do not return the English
    canonical name (the French Wiktionary returns "Annexe" for Appendix).
    """
    query = get_siteinfo(domain, "namespaces|namespacealiases")
    json_dict = {}
    for data in query["namespaces"].values():
        ns_id = data["id"]
        json_dict[data.get("canonical", "Main")] = {
            "id": ns_id,
            "name": data["name"],
            "aliases": [],
            "content": data.get("content", False),
            "issubject": ns_id < 0 or ns_id % 2 == 0,
            "istalk": ns_id >= 0 and ns_id % 2 != 0,
        }
    for data in query["namespacealiases"]:
        for ns_data in json_dict.values():
            if ns_data["id"] == data["id"] and data["alias"] != ns_data["name"]:
                ns_data["aliases"].append(data["alias"])
    return json_dict


def interwiki_data(domain):
    query = get_siteinfo(domain, "interwikimap")
    return [
        {
            "prefix": x["prefix"],
            "local": x.get("local", False),
            "localinterwiki": x.get("localinterwiki", False),
        }
        for x in query["interwikimap"]
    ]


def functionhook_data(domain):
    """
    Magic words of parser functions.  Variables and behavior switches
    share the magic word table, so only names listed as function hooks
    are kept.
    """
    query = get_siteinfo(domain, "functionhooks|magicwords")
    hooks = set(query["functionhooks"])
    return [
        {
            "name": x["name"],
            "aliases": x["aliases"],
            "case-sensitive": x.get("case-sensitive", False),
        }
        for x in query["magicwords"]
        if x["name"] in hooks
    ]


def write_json(path, data):
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def main():
    """
    Download the namespace, interwiki and function hook tables of a
    MediaWiki site into wikitextrewriter/data/<lang_code>/.
    """
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "domain", help="MediaWiki domain, for example: en.wiktionary.org"
    )
    parser.add_argument("lang_code", help="MediaWiki language code")
    args = parser.parse_args()

    data_folder = Path(f"wikitextrewriter/data/{args.lang_code}")
    data_folder.mkdir(parents=True, exist_ok=True)
    write_json(data_folder / "namespaces.json", namespace_data(args.domain))
    write_json(data_folder / "interwiki.json", interwiki_data(args.domain))
    write_json(data_folder / "functionhooks.json",
               functionhook_data(args.domain))


if __name__ == "__main__":
    sys.exit(main())
