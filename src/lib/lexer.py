"""
Custom Pygments lexer for docmark syntax highlighting

Provides syntax highlighting for directive markup when documentation
shows docmark source itself (```docmark fences).

Token types:
- Keyword.Declaration: Container names (:::tabs, :::note)
- Name.Function: Inline directives (:badge, :tooltip) and units (::card)
- Name.Decorator: Icons (:rocket:, :rocket:bold:)
- Name.Attribute / Literal.String: {key="value"} attributes
- Name.Variable: {{ variable.path }}
- Comment.Preproc: <!--@include: ...--> and <<< @/snippet imports
"""

from pygments.lexer import RegexLexer, bygroups, default
from pygments.token import (
    Text,
    Punctuation,
    Name,
    String,
    Keyword,
    Literal,
    Comment,
    Generic,
)


class DocmarkLexer(RegexLexer):
    """
    Lexer for docmark directive markup

    Example:
        :::note Heads up
        Run :badge[beta]{type="warning"} builds with {{ tool.name }}.
        :::

    Tokens:
        ::: → Punctuation
        note → Keyword.Declaration
        :badge → Name.Function
        type → Name.Attribute
        "warning" → Literal.String
    """

    name = 'Docmark'
    aliases = ['docmark', 'dm']
    filenames = []

    tokens = {
        'root': [
            # Includes and snippet imports
            (r'<!--\s*@include:[^>]*-->', Comment.Preproc),
            (r'^<<<[ \t]+@/\S+', Comment.Preproc),

            # Other HTML comments and tags
            (r'<!--.*?-->', Comment),
            (r'<[^>]+>', Name.Builtin),

            # Container opening :::name{attrs} / closing :::
            (r'^(:::)([ \t]*)([\w-]+)', bygroups(Punctuation, Text, Keyword.Declaration)),
            (r'^:::[ \t]*$', Punctuation),

            # Units inside containers (::card{...}, ::youtube[id]{...})
            (r'^(::)([\w-]+)', bygroups(Punctuation, Name.Function)),
            (r'^::[ \t]*$', Punctuation),

            # Tab separators
            (r'^==[ \t]+.*$', Generic.Subheading),

            # Abbreviation definitions
            (r'^(\*\[)([^\]]+)(\]:)(.*)$', bygroups(Punctuation, Name.Constant, Punctuation, String)),

            # Headings
            (r'^#{1,6}[ \t].*$', Generic.Heading),

            # Inline directives :badge[text]{...}, :tooltip[text]{...}
            (r'(:)(badge|tooltip)(\[)', bygroups(Punctuation, Name.Function, Punctuation), 'label'),

            # Icons :name: / :name:weight:
            (r':[a-z][a-z0-9-]*:(?:[a-z]+:)?', Name.Decorator),

            # Variables
            (r'\{\{\s*[\w.]+\s*\}\}', Name.Variable),

            # Attribute blocks
            (r'\{', Punctuation, 'attrs'),

            # Everything else is text
            (r'[^<:{*#=\n]+', Text),
            (r'\n', Text),
            (r'.', Text),
        ],

        'label': [
            (r'\]', Punctuation, ('#pop', 'attrs-optional')),
            (r'[^\]]+', String),
        ],

        'attrs-optional': [
            (r'\{', Punctuation, ('#pop', 'attrs')),
            default('#pop'),
        ],

        'attrs': [
            (r'\}', Punctuation, '#pop'),
            (r'([\w-]+)(=)("[^"]*"|\'[^\']*\'|[^\s}]+)',
             bygroups(Name.Attribute, Punctuation, Literal.String)),
            (r'#[\w-]+', Name.Label),
            (r'[\w-]+', Name.Attribute),
            (r'\s+', Text),
            (r'.', Text),
        ],
    }
