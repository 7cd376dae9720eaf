# finance_tracker/cli.py
from functools import wraps

import click
import yaml
from dotenv import load_dotenv

from finance_tracker.aggregation import category_frame, monthly_trend_frame
from finance_tracker.config import configure_logging, load_config
from finance_tracker.core.errors import FinanceTrackerError, InvalidDate
from finance_tracker.core.models import Category, TransactionType, UserRole, category_label
from finance_tracker.currency import BASE_CURRENCY, CURRENCIES, CUSTOM, convert_preview, is_base_currency
from finance_tracker.filters import ALL, SortSpec, TransactionFilter
from finance_tracker.manual import load_manual_transactions
from finance_tracker.money import format_net, format_signed, to_display_amount
from finance_tracker.outputs import get_output
from finance_tracker.outputs.summary import render_text
from finance_tracker.service import TransactionEntry, TransactionService, default_entry_date
from finance_tracker.timeutil import format_date, months_before, today_utc

TYPE_CHOICES = [t.value for t in TransactionType]
CATEGORY_CHOICES = [c.value for c in Category]
DATE_TYPE = click.DateTime(formats=['%Y-%m-%d'])


def handle_errors(f):
    """Report validation and storage failures as a clean CLI error."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except FinanceTrackerError as e:
            raise click.ClickException(str(e)) from e
    return wrapper


def _service(ctx):
    return ctx.obj['service']


def _date_range(ctx, start, end, months_key):
    end_date = end.date() if end else today_utc()
    if start:
        start_date = start.date()
    else:
        start_date = months_before(end_date, int(ctx.obj['config'][months_key]))
    if start_date > end_date:
        raise InvalidDate("Start date must be on or before end date")
    return start_date, end_date


@click.group()
@click.option(
    '--config', 'config_path',
    default='fintrack.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config YAML (optional; defaults are used when missing)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Optional .env file with FINTRACK_* settings'
)
@click.option(
    '--db', 'db_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='SQLite database file holding the ledger'
)
@click.option(
    '--principal',
    default=None,
    help='Identity whose ledger is used'
)
@click.pass_context
def main(ctx, config_path, env_file, db_path, principal):
    """
    Track income and expenses in INR, view dashboard summaries and
    produce printable or CSV reports over a date range.
    """
    if env_file:
        load_dotenv(env_file)

    cfg = load_config(config_path)
    if db_path:
        cfg['db_path'] = db_path
    if principal:
        cfg['principal'] = principal
    configure_logging(cfg)

    ctx.obj = {
        'config': cfg,
        'service': TransactionService(cfg.get('db_path'), cfg.get('principal')),
    }


def entry_options(f):
    """Options shared by add and edit; None means 'keep / use default'."""
    options = [
        click.option('--date', 'entry_date', default=None, help='Transaction date (YYYY-MM-DD, UTC)'),
        click.option('--amount', default=None, help='Amount in the entered currency'),
        click.option('--type', 'transaction_type', default=None, type=click.Choice(TYPE_CHOICES)),
        click.option('--category', default=None, type=click.Choice(CATEGORY_CHOICES)),
        click.option('--description', default=None, help='Optional note'),
        click.option('--currency', default=BASE_CURRENCY, show_default=True,
                     help=f'Currency code of the amount, or {CUSTOM} with --custom-code'),
        click.option('--rate', 'exchange_rate', default=None,
                     help=f'Exchange rate: 1 unit of the currency = ? {BASE_CURRENCY}'),
        click.option('--custom-code', 'custom_code', default='', help='Code or name of a custom currency'),
    ]
    for option in reversed(options):
        f = option(f)
    return f


@main.command()
@entry_options
@handle_errors
@click.pass_context
def add(ctx, entry_date, amount, transaction_type, category, description,
        currency, exchange_rate, custom_code):
    """Add a transaction."""
    entry = TransactionEntry(
        date=entry_date or default_entry_date(),
        amount=amount or '',
        transaction_type=transaction_type or TransactionType.EXPENSE.value,
        category=category or Category.OTHER.value,
        description=description or '',
        currency=currency,
        exchange_rate=exchange_rate,
        custom_currency_code=custom_code,
    )
    if not is_base_currency(currency) and exchange_rate:
        click.echo(convert_preview(amount, exchange_rate))
    tid = _service(ctx).save_entry(entry)
    click.echo(f"Transaction added successfully! (id {tid})")


@main.command()
@click.argument('transaction_id', type=int)
@entry_options
@handle_errors
@click.pass_context
def edit(ctx, transaction_id, entry_date, amount, transaction_type, category,
         description, currency, exchange_rate, custom_code):
    """Replace the fields of an existing transaction."""
    if amount is None and (not is_base_currency(currency) or exchange_rate or custom_code):
        raise click.UsageError("--currency, --rate and --custom-code require --amount")
    service = _service(ctx)
    entry = TransactionEntry.from_transaction(service.get_transaction(transaction_id))
    if entry_date is not None:
        entry.date = entry_date
    if amount is not None:
        entry.amount = amount
        entry.currency = currency
        entry.exchange_rate = exchange_rate
        entry.custom_currency_code = custom_code
    if transaction_type is not None:
        entry.transaction_type = transaction_type
    if category is not None:
        entry.category = category
    if description is not None:
        entry.description = description
    service.save_entry(entry, transaction_id)
    click.echo("Transaction updated successfully!")


@main.command()
@click.argument('transaction_id', type=int)
@click.option('--yes', is_flag=True, default=False, help='Do not ask for confirmation')
@handle_errors
@click.pass_context
def delete(ctx, transaction_id, yes):
    """Delete a transaction. This cannot be undone."""
    if not yes:
        click.confirm('Are you sure you want to delete this transaction?', abort=True)
    _service(ctx).delete_transaction(transaction_id)
    click.echo("Transaction deleted successfully!")


@main.command(name='list')
@click.option('--type', 'transaction_type', default=ALL, type=click.Choice([ALL] + TYPE_CHOICES))
@click.option('--category', default=ALL, type=click.Choice([ALL] + CATEGORY_CHOICES))
@click.option('--start', default=None, type=DATE_TYPE, help='Start date (inclusive)')
@click.option('--end', default=None, type=DATE_TYPE, help='End date (inclusive)')
@click.option('--sort-by', default='date', type=click.Choice(['date', 'amount']))
@click.option('--order', default='desc', type=click.Choice(['asc', 'desc']))
@handle_errors
@click.pass_context
def list_transactions(ctx, transaction_type, category, start, end, sort_by, order):
    """List transactions with optional filters and sorting."""
    service = _service(ctx)
    flt = TransactionFilter.for_dates(
        start.date() if start else None,
        end.date() if end else None,
        transaction_type=transaction_type,
        category=category,
    )
    txs = service.view(flt, SortSpec(sort_by, order))
    if not txs:
        if not service.list_transactions():
            click.echo("No transactions yet. Add your first transaction to get started!")
        else:
            click.echo("No transactions match your filters.")
        return
    for tx in txs:
        click.echo(
            f"{tx.transaction_id:>5}  {format_date(tx.date):<13} {tx.transaction_type.value:<8} "
            f"{category_label(tx.category):<14} {format_signed(tx.amount, tx.transaction_type):>16}  "
            f"{tx.description or '—'}"
        )


@main.command()
@click.option('--start', default=None, type=DATE_TYPE, help='Start date (default: 6 months ago)')
@click.option('--end', default=None, type=DATE_TYPE, help='End date (default: today)')
@handle_errors
@click.pass_context
def dashboard(ctx, start, end):
    """Totals, monthly trend and category breakdown for a date range."""
    start_date, end_date = _date_range(ctx, start, end, 'dashboard_months')
    data = _service(ctx).dashboard(start_date, end_date)
    totals = data['totals']
    click.echo(f"Dashboard {start_date.isoformat()} to {end_date.isoformat()}")
    click.echo(f"Total Income:   {to_display_amount(totals.income)}")
    click.echo(f"Total Expenses: {to_display_amount(totals.expense)}")
    click.echo(f"Net Balance:    {format_net(totals.net)}")

    click.echo("\nMonthly Trend")
    if data['monthly_summaries']:
        click.echo(monthly_trend_frame(data['monthly_summaries']).to_string(index=False))
    else:
        click.echo("No data available for the selected date range")

    click.echo("\nExpenses by Category")
    shares = [s for s in data['category_shares'] if s.amount > 0]
    if shares:
        click.echo(category_frame(shares).to_string(index=False))
    else:
        click.echo("No expense data available for the selected date range")


@main.command()
@click.option('--start', default=None, type=DATE_TYPE, help='Start date (default: 1 month ago)')
@click.option('--end', default=None, type=DATE_TYPE, help='End date (default: today)')
@click.option('--html', 'as_html', is_flag=True, default=False, help='Write a printable HTML file')
@handle_errors
@click.pass_context
def report(ctx, start, end, as_html):
    """Printable report of every transaction in a date range."""
    start_date, end_date = _date_range(ctx, start, end, 'report_months')
    service = _service(ctx)
    if as_html:
        out_path = get_output('html', ctx.obj['config']).write(
            service.in_range(start_date, end_date), start_date, end_date
        )
        click.echo(f"Report written to {out_path}")
        return
    click.echo(render_text(service.printable_report(start_date, end_date)))


@main.command()
@click.option('--start', default=None, type=DATE_TYPE, help='Start date (default: 1 month ago)')
@click.option('--end', default=None, type=DATE_TYPE, help='End date (default: today)')
@click.option('--output-dir', default=None, type=click.Path(file_okay=False),
              help='Directory for the CSV (default: output_dir from config)')
@handle_errors
@click.pass_context
def export(ctx, start, end, output_dir):
    """Export a date range to transactions_<start>_to_<end>.csv."""
    start_date, end_date = _date_range(ctx, start, end, 'report_months')
    cfg = dict(ctx.obj['config'])
    if output_dir:
        cfg['output_dir'] = output_dir
    txs = _service(ctx).in_range(start_date, end_date)
    if not txs:
        click.echo("No transactions found for the selected date range", err=True)
    out_path = get_output('csv', cfg).write(txs, start_date, end_date)
    click.echo(f"Exported {len(txs)} transaction(s) to {out_path}")


@main.command(name='import')
@click.argument('manual_file', type=click.Path(exists=True, dir_okay=False))
@handle_errors
@click.pass_context
def import_transactions(ctx, manual_file):
    """Add every entry of a YAML file of transactions."""
    service = _service(ctx)
    try:
        entries = load_manual_transactions(manual_file)
    except (ValueError, AttributeError, yaml.YAMLError) as e:
        raise click.ClickException(f"Error loading manual transactions: {e}") from e
    # Validate everything first so a bad entry stores nothing.
    payloads = [entry.to_data() for entry in entries]
    for data in payloads:
        service.add_transaction(data)
    click.echo(f"Imported {len(payloads)} transaction(s) from {manual_file}.")


@main.command()
@click.option('--name', default=None, help='Set your display name')
@handle_errors
@click.pass_context
def profile(ctx, name):
    """Show or set the caller's profile."""
    service = _service(ctx)
    if name is not None:
        service.save_profile(name)
        click.echo(f"Profile saved: {name.strip()}")
        return
    current = service.get_profile()
    if current is None:
        click.echo("No profile yet. Set your name with: fintrack profile --name NAME")
    else:
        click.echo(f"Name: {current.name}")
    click.echo(f"Role: {service.role().value}")


@main.command()
@click.argument('user')
@click.argument('role_name', type=click.Choice([r.value for r in UserRole]))
@handle_errors
@click.pass_context
def role(ctx, user, role_name):
    """Assign ROLE_NAME to USER (admins only)."""
    _service(ctx).assign_role(user, UserRole(role_name))
    click.echo(f"Assigned role {role_name} to {user}.")


@main.command()
def currencies():
    """List the selectable entry currencies."""
    for c in CURRENCIES:
        click.echo(f"{c.code:<4} {c.name}")
    click.echo(f"{CUSTOM:<4} Custom currency (needs --custom-code and --rate)")
