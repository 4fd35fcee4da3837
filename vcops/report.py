#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""Output formats for report rows."""
import csv
import datetime
import io
import yaml
from jinja2 import Environment, PackageLoader, select_autoescape
from vcops import Logger

class Report(Logger):
    """
    Renders a header and rows as a text table, csv, html or yaml.
    """
    formats = ['table', 'csv', 'html', 'yaml']

    def __init__(self, header, rows, title=None):
        """
        Args:
            header (list): Column names
            rows (list):   A list of rows, each the length of header
            title (str):   Report title used by html
        """
        self.header = header
        self.rows = rows
        self.title = title or 'vcops report'

    @staticmethod
    def cell(value):
        """ Returns the text of a report cell. """
        if value is None:
            return ''
        return str(value)

    def table(self):
        """ Returns rows as columns padded to the widest value. """
        lines = [self.header] + [[self.cell(val) for val in row] for row in self.rows]
        widths = [max(len(str(line[num])) for line in lines) for num in range(len(self.header))]

        return '\n'.join(
            '  '.join(str(val).ljust(widths[num]) for num, val in enumerate(line)).rstrip()
            for line in lines
        ) + '\n'

    def csv(self):
        """ Returns rows as csv. """
        stream = io.StringIO()
        writer = csv.writer(stream, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
        writer.writerow(self.header)
        for row in self.rows:
            writer.writerow([self.cell(val) for val in row])

        return stream.getvalue()

    def html(self):
        """ Returns rows as a html document. """
        env = Environment(
            loader=PackageLoader('vcops', 'templates'),
            autoescape=select_autoescape(['html'])
        )
        template = env.get_template('report.html')

        return template.render(
            title=self.title,
            header=self.header,
            rows=[[self.cell(val) for val in row] for row in self.rows],
            generated=datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        )

    def yaml(self):
        """ Returns rows as a yaml list of mappings. """
        return yaml.safe_dump(
            [dict(zip(self.header, row)) for row in self.rows], default_flow_style=False
        )

    def render(self, fmt='table'):
        """
        Method returns the report in the selected format.

        Args:
            fmt (str): table, csv, html or yaml
        """
        if fmt not in self.formats:
            raise ValueError('unsupported report format %s' % (fmt))

        return getattr(self, fmt)()

    def write(self, fmt='table', output=None):
        """
        Method writes the report to a file or stdout.

        Args:
            fmt (str):    table, csv, html or yaml
            output (str): Path of the output file, stdout if not set.
        """
        content = self.render(fmt)

        if output:
            with open(output, 'w') as report_file:
                report_file.write(content)
            self.logger.info('%s rows written to %s', len(self.rows), output)
            print('%s written to %s' % (self.title, output))
        else:
            print(content, end='')
