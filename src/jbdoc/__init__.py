"""jbdoc - OpenAPI annotation linter for JBuilder templates.

Scans ``.jbuilder`` sources for ``# @openapi`` comments, matches them against
``json.<field>`` declarations, reports undocumented or malformed fields, and
derives OpenAPI-style schema metadata from the annotations.
"""

__version__ = "0.1.0"
