"""Shared pytest fixtures for academia_cv tests."""

import pytest

from academia_cv.config import Config
from academia_cv.schema import ProfileRecord

ORCID_ID = "0000-0002-0337-5997"


def make_bibtex(key, title, year, authors="O'Meara, Brian C.", journal="Evolution"):
    return (
        f"@article{{{key},\n"
        f"  author = {{{authors}}},\n"
        f"  title = {{{title}}},\n"
        f"  journal = {{{journal}}},\n"
        f"  year = {{{year}}},\n"
        f"  doi = {{10.1000/{key}}}\n"
        f"}}"
    )


def make_work(put_code, work_type, title, year, bibtex=None, venue="", authors=None):
    """Build a full ORCID work as returned by the bulk works endpoint."""
    work = {
        "put-code": put_code,
        "type": work_type,
        "title": {"title": {"value": title}},
        "publication-date": {"year": {"value": year}},
        "journal-title": {"value": venue} if venue else None,
        "contributors": {
            "contributor": [{"credit-name": {"value": a}} for a in (authors or [])]
        },
        "external-ids": {"external-id": []},
    }
    if bibtex:
        work["citation"] = {"citation-type": "bibtex", "citation-value": bibtex}
    return work


def make_affiliation(summary_key, org_name, role="", department="",
                     start_year="", end_year="", city="", region=""):
    """Build a minimal affiliation-group entry."""
    return {
        "summaries": [{
            summary_key: {
                "organization": {
                    "name": org_name,
                    "address": {"city": city, "region": region, "country": "US"},
                },
                "role-title": role,
                "department-name": department or None,
                "start-date": {"year": {"value": start_year}} if start_year else None,
                "end-date": {"year": {"value": end_year}} if end_year else None,
            }
        }]
    }


def make_funding(put_code, title, org, amount, start_year):
    """Build a full ORCID funding record (the kind that carries an amount)."""
    return {
        "put-code": put_code,
        "type": "grant",
        "title": {"title": {"value": title}},
        "organization": {"name": org},
        "amount": {"value": amount, "currency-code": "USD"} if amount is not None else None,
        "start-date": {"year": {"value": start_year}},
        "end-date": None,
    }


@pytest.fixture
def full_works():
    return {
        "101": make_work(101, "journal-article", "Paper on Trees", "2016",
                         bibtex=make_bibtex("omeara2016", "Paper on Trees", "2016")),
        "102": make_work(102, "journal-article", "Paper on <i>Drosophila</i>", "2012",
                         venue="Systematic Biology", authors=["Jane Doe", "Brian O'Meara"]),
        "103": make_work(103, "book-chapter", "A Chapter", "2014",
                         bibtex="@incollection{ch2014,\n  author = {O'Meara, Brian},\n"
                                "  title = {A Chapter},\n  booktitle = {Modern Phylogenetics},\n"
                                "  publisher = {Springer},\n  year = {2014}\n}"),
        "104": make_work(104, "data-set", "Some Data", "2015"),
    }


@pytest.fixture
def funding_details():
    return {
        "201": make_funding(201, "CAREER: Trees", "National Science Foundation", "1500000", "2012"),
        "202": make_funding(202, "Small Grant", "Encyclopedia of Life", "250000", "2015"),
    }


@pytest.fixture
def sample_record(full_works, funding_details):
    """An ORCID /record payload: summaries only, no citations or amounts."""
    def summary(work):
        return {"work-summary": [{k: work[k] for k in ("put-code", "type", "title", "publication-date")}]}

    def funding_summary(funding):
        return {"funding-summary": [{k: v for k, v in funding.items() if k != "amount"}]}

    return {
        "orcid-identifier": {"path": ORCID_ID},
        "activities-summary": {
            "works": {"group": [summary(w) for w in full_works.values()]},
            "fundings": {"group": [funding_summary(f) for f in funding_details.values()]},
            "educations": {
                "affiliation-group": [
                    make_affiliation("education-summary", "Harvard University", role="BA",
                                     department="Biology", start_year="1996", end_year="2000"),
                    make_affiliation("education-summary", "UC Davis", role="PhD",
                                     department="Population Biology", start_year="2001", end_year="2006"),
                ],
            },
            "employments": {
                "affiliation-group": [
                    make_affiliation("employment-summary", "NESCent", role="Postdoc",
                                     start_year="2006", end_year="2008", city="Durham", region="NC"),
                    make_affiliation("employment-summary", "University of Tennessee", role="Professor",
                                     department="Ecology & Evolutionary Biology", start_year="2009",
                                     city="Knoxville", region="TN"),
                ],
            },
        },
    }


@pytest.fixture
def config(tmp_path):
    """Default configuration pointing its tables at a temp directory."""
    cfg = Config()
    cfg.set("people", "path", str(tmp_path / "people.txt"))
    cfg.set("service", "path", str(tmp_path / "service.txt"))
    cfg.set("assemble", "static_dir", str(tmp_path / "static"))
    return cfg


def make_citation(key, title, year, work_type="journal-article", **kwargs):
    return {
        "citation": make_bibtex(key, title, year, **kwargs),
        "work_type": work_type,
        "title": title,
        "year": year,
        "source": "orcid",
    }


def make_award(title, org, amount, start_year):
    return {
        "title": title,
        "organization": org,
        "amount": amount,
        "currency": "USD",
        "type": "grant",
        "start_year": start_year,
        "end_year": "",
    }


def make_entry(org, role, start_year="", end_year="", department="", city="", region=""):
    return {
        "organization": org,
        "role": role,
        "department": department,
        "city": city,
        "region": region,
        "country": "US",
        "start_year": start_year,
        "end_year": end_year,
    }


@pytest.fixture
def profile():
    """A small normalized profile."""
    return ProfileRecord(
        orcid_id=ORCID_ID,
        journals=tuple(make_citation(f"p{i}", f"Paper {i}", str(2000 + i)) for i in range(10)),
        books=(make_citation("b1", "Book Chapter One", "2014", work_type="book-chapter"),),
        fundings=(
            make_award("CAREER: Trees", "National Science Foundation", "1500000", "2012"),
            make_award("Small Grant", "Encyclopedia of Life", "250000", "2015"),
        ),
        educations=(make_entry("UC Davis", "PhD", "2001", "2006", department="Population Biology"),),
        employments=(make_entry("University of Tennessee", "Professor", "2009", city="Knoxville", region="TN"),),
    )


@pytest.fixture
def people():
    base = {"URL": "", "Note": "", "NIMBioS": "", "CurrentPosition": "", "Department": "", "Stop": ""}
    return [
        {**base, "First": "Zoe", "Last": "Zed", "Stage": "PhD student", "Start": "2015"},
        {**base, "First": "Al", "Last": "Abe", "Stage": "PhD student", "Start": "2012", "Stop": "2017",
         "URL": "https://example.org/abe"},
        {**base, "First": "Pat", "Last": "Post", "Stage": "Postdoc", "Start": "2013", "Stop": "2015",
         "NIMBioS": "Yes", "CurrentPosition": "Professor"},
        {**base, "First": "Cam", "Last": "Comm", "Stage": "Committee", "Start": "2014",
         "Department": "Mathematics"},
    ]
