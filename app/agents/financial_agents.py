"""
Financial Agent Module
Loads transaction data, aggregates spending, drafts budgets and renders reports
"""

import html
import io
import math
import os
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from app.agents.llm import invoke_llm
from app.config import get_app_config
from app.errors import InsufficientDataError

SAMPLE_TRANSACTIONS_CSV = """date,description,category,amount
2024-01-02,Monthly salary,Income,4200.00
2024-01-03,Whole Foods,Groceries,-84.20
2024-01-05,City Apartments,Housing,-1450.00
2024-01-08,Blue Bottle Coffee,Dining,-12.50
2024-01-12,Shell,Transport,-48.75
2024-01-15,Netflix,Entertainment,-15.99
2024-01-19,Whole Foods,Groceries,-96.40
2024-01-24,Sushi Bar,Dining,-64.00
2024-01-28,Electric Company,Utilities,-88.30
2024-02-01,Monthly salary,Income,4200.00
2024-02-02,Whole Foods,Groceries,-102.10
2024-02-05,City Apartments,Housing,-1450.00
2024-02-09,Shell,Transport,-51.20
2024-02-14,Sushi Bar,Dining,-92.00
2024-02-15,Netflix,Entertainment,-15.99
2024-02-20,Bookstore,Shopping,-38.60
2024-02-26,Electric Company,Utilities,-79.45
2024-03-01,Monthly salary,Income,4200.00
2024-03-04,Whole Foods,Groceries,-91.35
2024-03-05,City Apartments,Housing,-1450.00
2024-03-11,Blue Bottle Coffee,Dining,-18.25
2024-03-15,Netflix,Entertainment,-15.99
2024-03-18,Shell,Transport,-46.90
2024-03-22,Electronics Store,Shopping,-249.99
2024-03-27,Electric Company,Utilities,-71.80
"""

UNCATEGORIZED = "Uncategorized"
UNKNOWN_MERCHANT = "Unknown"

# Header keywords, English and Japanese
DATE_KEYWORDS = ('date',)
AMOUNT_KEYWORDS = ('amount', '金額')
CATEGORY_KEYWORDS = ('category', 'カテゴリ')
MERCHANT_KEYWORDS = ('merchant', 'description', '店舗', '説明')

# ============================================================================
# Helpers
# ============================================================================

def format_currency(amount: float, symbol: str = '$') -> str:
    return f"{symbol}{amount:,.2f}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _find_column(columns: Iterable[str], keywords: Iterable[str]) -> Optional[str]:
    """First column whose lower-cased name contains any keyword"""
    for column in columns:
        name = str(column).strip().lower()
        if any(keyword in name for keyword in keywords):
            return column
    return None


def _read_csv(csv_data: str) -> pd.DataFrame:
    if not csv_data or not csv_data.strip():
        raise InsufficientDataError("No transaction data available")
    # Rows with surplus fields are truncated, never shifted into an index column
    return pd.read_csv(
        io.StringIO(csv_data),
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        index_col=False,
        on_bad_lines='warn'
    )

# ============================================================================
# Transaction Fetcher Agent
# ============================================================================

def filter_by_date_range(csv_data: str, date_range: Optional[Dict[str, str]]) -> str:
    """
    Keep rows whose date falls inside [start, end] (inclusive)

    Rows with an unparseable date are kept; without a date column or range
    the data is returned unchanged.
    """
    if not date_range:
        return csv_data

    frame = _read_csv(csv_data)
    date_column = _find_column(frame.columns, DATE_KEYWORDS)
    if date_column is None:
        return csv_data

    dates = pd.to_datetime(frame[date_column], errors='coerce', format='mixed')
    keep = dates.isna()
    if date_range.get('start'):
        start = pd.Timestamp(date_range['start'])
        in_range = dates >= start
    else:
        in_range = pd.Series(True, index=frame.index)
    if date_range.get('end'):
        end = pd.Timestamp(date_range['end'])
        in_range &= dates <= end

    return frame[keep | in_range].to_csv(index=False)


def transaction_fetcher_agent(state: Dict) -> Dict:
    """Reads transaction CSV from source_file, or uses bundled sample data"""
    print("📥 Transaction Fetcher: Loading transaction data...")

    source_file = state.get('source_file')

    if source_file and os.path.exists(source_file):
        with open(source_file, 'r', encoding='utf-8') as f:
            csv_data = f.read()
        print(f"✓ Loaded transactions from {source_file}")
    else:
        if source_file:
            print(f"ℹ️  File {source_file} not found, using sample transactions")
        else:
            print("ℹ️  No source file given, using sample transactions")
        csv_data = SAMPLE_TRANSACTIONS_CSV

    if not csv_data.strip():
        raise InsufficientDataError("No transaction data available")

    state['csv_data'] = filter_by_date_range(csv_data, state.get('date_range'))
    if state.get('date_range'):
        print(f"✓ Filtered to {state['date_range'].get('start') or '...'} - {state['date_range'].get('end') or '...'}")

    return state

# ============================================================================
# Transaction Analyzer Agent
# ============================================================================

def parse_transactions(csv_data: str) -> pd.DataFrame:
    """
    Normalize raw CSV into date / amount / category / merchant columns

    Columns are matched by header keyword; zero-amount rows are dropped.
    """
    frame = _read_csv(csv_data)
    if frame.empty:
        raise InsufficientDataError("Insufficient transaction data")

    amount_column = _find_column(frame.columns, AMOUNT_KEYWORDS)
    if amount_column is None:
        raise InsufficientDataError("Amount column not found in CSV data")

    def text_column(keywords, default):
        column = _find_column(frame.columns, keywords)
        if column is None:
            return pd.Series(default, index=frame.index)
        return frame[column].str.strip().replace('', default)

    amounts = pd.to_numeric(
        frame[amount_column].str.replace(r'[^0-9.\-]', '', regex=True),
        errors='coerce'
    ).fillna(0.0)

    transactions = pd.DataFrame({
        'date': text_column(DATE_KEYWORDS, ''),
        'amount': amounts,
        'category': text_column(CATEGORY_KEYWORDS, UNCATEGORIZED),
        'merchant': text_column(MERCHANT_KEYWORDS, UNKNOWN_MERCHANT),
    })

    return transactions[transactions['amount'] != 0].reset_index(drop=True)


def _totals(series: pd.Series) -> Dict[str, float]:
    return {str(key): round(float(value), 2) for key, value in series.items()}


def analyze_transactions(csv_data: str, top_merchants: int = 5, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Aggregate spending (negative amounts) from transaction CSV

    Returns:
        Dict with total_spending, category_breakdown (largest first),
        top_merchants, monthly_trend (chronological) and transaction_count
    """
    transactions = parse_transactions(csv_data)

    expenses = transactions[transactions['amount'] < 0].copy()
    expenses['spent'] = expenses['amount'].abs()

    category_totals = expenses.groupby('category')['spent'].sum().sort_values(ascending=False, kind='stable')
    merchant_totals = expenses.groupby('merchant')['spent'].sum().sort_values(ascending=False, kind='stable')

    monthly_trend = []
    if not expenses.empty:
        current_month = (today or date.today()).strftime('%Y-%m')
        dates = pd.to_datetime(expenses['date'], errors='coerce', format='mixed')
        expenses['month'] = dates.dt.strftime('%Y-%m').fillna(current_month)
        monthly_totals = expenses.groupby('month')['spent'].sum().sort_index()
        monthly_trend = [{'month': month, 'amount': amount} for month, amount in _totals(monthly_totals).items()]

    return {
        'total_spending': round(float(expenses['spent'].sum()), 2),
        'category_breakdown': _totals(category_totals),
        'top_merchants': [
            {'name': name, 'amount': amount}
            for name, amount in _totals(merchant_totals.head(top_merchants)).items()
        ],
        'monthly_trend': monthly_trend,
        'transaction_count': int(len(transactions)),
    }


def transaction_analyzer_agent(state: Dict) -> Dict:
    """Computes spending totals, category breakdown, merchants and monthly trend"""
    print("📊 Transaction Analyzer: Analyzing spending...")

    finance_config = get_app_config()['finance']
    analysis = analyze_transactions(state.get('csv_data', ''), top_merchants=finance_config['top_merchants'])

    state['analysis'] = analysis
    symbol = finance_config['currency_symbol']
    print(f"✓ Analyzed {analysis['transaction_count']} transactions")
    print(f"   💰 Total spending: {format_currency(analysis['total_spending'], symbol)}")
    print(f"   📈 Categories analyzed: {len(analysis['category_breakdown'])}")

    return state

# ============================================================================
# Budget Advisor Agent
# ============================================================================

def compute_budget(analysis: Dict[str, Any], reduction: float = 0.2, symbol: str = '$') -> Dict[str, Any]:
    """
    Derive a monthly budget that trims each category by `reduction`

    Returns:
        Dict with monthly_budget, potential_savings and savings_plan
    """
    months = max(len(analysis['monthly_trend']), 1)

    monthly_budget = {
        category: _round_half_up(amount / months * (1 - reduction))
        for category, amount in analysis['category_breakdown'].items()
    }

    current_avg_monthly = analysis['total_spending'] / months
    potential_savings = round(max(0.0, current_avg_monthly - sum(monthly_budget.values())), 2)

    return {
        'monthly_budget': monthly_budget,
        'potential_savings': potential_savings,
        'savings_plan': (
            f"Target monthly savings of {format_currency(potential_savings, symbol)}, "
            f"or {format_currency(potential_savings * 12, symbol)} per year."
        ),
    }


def build_budget_prompt(analysis: Dict[str, Any], symbol: str = '$') -> str:
    categories = "\n".join(
        f"- {category}: {format_currency(amount, symbol)}"
        for category, amount in analysis['category_breakdown'].items()
    )
    merchants = "\n".join(
        f"{i}. {merchant['name']}: {format_currency(merchant['amount'], symbol)}"
        for i, merchant in enumerate(analysis['top_merchants'], 1)
    )
    trend = "\n".join(
        f"{month['month']}: {format_currency(month['amount'], symbol)}"
        for month in analysis['monthly_trend']
    )

    return f"""Based on the spending analysis below, write detailed budget recommendations.

Total spending: {format_currency(analysis['total_spending'], symbol)}

Spending by category:
{categories or '- none'}

Top merchants:
{merchants or 'none'}

Monthly trend:
{trend or 'none'}

Answer in this format:

## Budget Recommendations

### 1. Ways to cut spending
[At least three concrete suggestions]

### 2. Monthly allocation
[Recommended monthly budget per category]

### 3. Savings plan
[Achievable savings target and how to reach it]

### 4. Watch points
[Spending patterns to keep an eye on]

Use {symbol} amounts and keep the advice practical and achievable."""


def fallback_recommendations(analysis: Dict[str, Any], budget: Dict[str, Any], symbol: str = '$') -> str:
    """Rule-of-thumb advice used when no LLM answer is available"""
    lines = ["## Budget Recommendations", ""]
    top_categories = list(analysis['category_breakdown'].items())[:3]

    if not top_categories:
        lines.append("No spending was found in the analyzed period.")
        return "\n".join(lines)

    lines.append("### Ways to cut spending")
    for category, amount in top_categories:
        target = budget['monthly_budget'].get(category, 0)
        lines.append(f"- {category}: currently {format_currency(amount, symbol)} in total; "
                     f"aim for {format_currency(target, symbol)} per month")
    lines.append("")
    lines.append("### Savings plan")
    lines.append(budget['savings_plan'])

    return "\n".join(lines)


def budget_advisor_agent(state: Dict) -> Dict:
    """Builds the budget and asks the LLM for recommendations"""
    print("🤖 Budget Advisor: Generating budget recommendations...")

    finance_config = get_app_config()['finance']
    symbol = finance_config['currency_symbol']
    analysis = state['analysis']

    budget = compute_budget(analysis, finance_config['budget_reduction'], symbol)

    try:
        recommendations = invoke_llm(build_budget_prompt(analysis, symbol), temperature=0.7)
        budget['recommendations'] = recommendations or fallback_recommendations(analysis, budget, symbol)
        print("✓ Budget recommendations generated")
    except Exception as e:
        error_msg = f"Budget recommendation error: {str(e)}"
        state['errors'].append(error_msg)
        budget['recommendations'] = fallback_recommendations(analysis, budget, symbol)
        print(f"✗ {error_msg}")

    state['budget'] = budget
    return state

# ============================================================================
# Report Generator Agent
# ============================================================================

REPORT_STYLE = """
        body { font-family: 'Helvetica Neue', Arial, sans-serif; margin: 40px; background-color: #f5f7fa; color: #333; }
        .container { max-width: 900px; margin: 0 auto; background: white; padding: 40px; border-radius: 12px; box-shadow: 0 4px 20px rgba(0,0,0,0.1); }
        h1 { color: #2c3e50; border-bottom: 4px solid #3498db; padding-bottom: 15px; }
        h2 { color: #34495e; margin-top: 40px; border-left: 4px solid #3498db; padding-left: 15px; }
        .metric { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 25px; border-radius: 10px; text-align: center; }
        .amount { font-size: 2.5em; font-weight: bold; margin-top: 10px; }
        .category { margin: 8px 0; padding: 12px; border-left: 4px solid #3498db; background: #f8f9fa; }
        .budget-item { background: #d5f4e6; padding: 15px; margin: 8px 0; border-radius: 8px; border-left: 4px solid #27ae60; }
        table { width: 100%; border-collapse: collapse; margin: 20px 0; }
        th, td { padding: 15px; text-align: left; border-bottom: 1px solid #ddd; }
        th { background-color: #3498db; color: white; }
        .highlight { background-color: #f39c12; color: white; padding: 4px 8px; border-radius: 4px; font-weight: bold; }
        .recommendations { background: #f8f9fa; padding: 25px; border-radius: 8px; border-left: 4px solid #f39c12; white-space: pre-line; line-height: 1.6; }
        .savings-plan { background: linear-gradient(135deg, #4facfe 0%, #00f2fe 100%); color: white; padding: 20px; border-radius: 10px; text-align: center; }
"""


def _share(amount: float, total: float) -> str:
    return f"{(amount / total * 100) if total else 0:.1f}%"


def render_html_report(
    analysis: Dict[str, Any],
    budget: Dict[str, Any],
    symbol: str = '$',
    generated_at: Optional[datetime] = None
) -> str:
    """Render a self-contained HTML report; all data values are escaped"""
    esc = html.escape
    total = analysis['total_spending']
    generated_at = generated_at or datetime.now()

    categories = "".join(
        f"""
            <div class="category">
                <strong>{esc(category)}:</strong> {esc(format_currency(amount, symbol))}
                <span class="highlight">{_share(amount, total)}</span>
            </div>"""
        for category, amount in analysis['category_breakdown'].items()
    )

    merchants = "".join(
        f"""
                <tr><td><strong>#{i}</strong></td><td>{esc(m['name'])}</td>"""
        f"""<td>{esc(format_currency(m['amount'], symbol))}</td><td>{_share(m['amount'], total)}</td></tr>"""
        for i, m in enumerate(analysis['top_merchants'], 1)
    )

    months = "".join(
        f"""
                <tr><td>{esc(t['month'])}</td><td>{esc(format_currency(t['amount'], symbol))}</td></tr>"""
        for t in analysis['monthly_trend']
    )

    budget_items = "".join(
        f"""
            <div class="budget-item"><strong>{esc(category)}:</strong> {esc(format_currency(amount, symbol))}/month</div>"""
        for category, amount in sorted(budget['monthly_budget'].items(), key=lambda kv: kv[1], reverse=True)
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Financial Analysis Report</title>
    <style>{REPORT_STYLE}    </style>
</head>
<body>
    <div class="container">
        <h1>📊 Financial Analysis Report</h1>
        <p><strong>Generated:</strong> {generated_at.strftime('%Y-%m-%d %H:%M')}</p>

        <div class="metric">
            <h2 style="color: white; border: none; margin: 0; padding: 0;">💰 Total Spending</h2>
            <div class="amount">{esc(format_currency(total, symbol))}</div>
        </div>

        <h2>📈 Spending by Category</h2>{categories}

        <h2>🏪 Top Merchants</h2>
        <table>
            <tr><th>Rank</th><th>Merchant</th><th>Spent</th><th>Share</th></tr>{merchants}
        </table>

        <h2>📅 Monthly Trend</h2>
        <table>
            <tr><th>Month</th><th>Spent</th></tr>{months}
        </table>

        <h2>💡 AI Budget Recommendations</h2>
        <div class="recommendations">{esc(budget.get('recommendations', ''))}</div>

        <h2>🎯 Recommended Monthly Budget</h2>{budget_items}

        <div class="savings-plan">
            <h2 style="color: white; border: none; margin: 0 0 10px 0; padding: 0;">💰 Savings Plan</h2>
            {esc(budget['savings_plan'])}
        </div>
    </div>
</body>
</html>"""


def build_text_summary(analysis: Dict[str, Any], budget: Dict[str, Any], symbol: str = '$') -> str:
    months = max(len(analysis['monthly_trend']), 1)
    average_monthly = analysis['total_spending'] / months
    savings = format_currency(budget['potential_savings'], symbol)

    if analysis['category_breakdown']:
        top_category, top_amount = next(iter(analysis['category_breakdown'].items()))
        top_line = f"{top_category} ({format_currency(top_amount, symbol)})"
    else:
        top_category, top_line = "N/A", "N/A"

    return "\n".join([
        "📊 Financial Analysis Summary",
        "",
        f"Total spending: {format_currency(analysis['total_spending'], symbol)}",
        f"Largest category: {top_line}",
        f"Average monthly spending: {format_currency(average_monthly, symbol)}",
        f"Recommended monthly savings: {savings}",
        "",
        "Key suggestions:",
        f"• Review spending in \"{top_category}\", the largest category",
        "• Set monthly budgets per category and track them",
        "• Review spending patterns regularly",
        f"• Aim to save {savings} per month",
        "",
        f"Months analyzed: {len(analysis['monthly_trend'])}",
        f"Top merchants: {len(analysis['top_merchants'])}",
    ])


def report_generator_agent(state: Dict) -> Dict:
    """Renders the HTML report and text summary, saving the HTML if requested"""
    print("📝 Report Generator: Generating report...")

    symbol = get_app_config()['finance']['currency_symbol']
    analysis = state['analysis']
    budget = state['budget']

    state['html_report'] = render_html_report(analysis, budget, symbol)
    state['summary'] = build_text_summary(analysis, budget, symbol)
    state['final_summary'] = state['summary']

    report_file = state.get('report_file')
    if report_file:
        try:
            with open(report_file, 'w', encoding='utf-8') as f:
                f.write(state['html_report'])
            print(f"📄 HTML report saved to: {report_file}")
        except OSError as e:
            error_msg = f"Report save error: {str(e)}"
            state['errors'].append(error_msg)
            print(f"✗ {error_msg}")

    print("✓ Report generated")
    return state
