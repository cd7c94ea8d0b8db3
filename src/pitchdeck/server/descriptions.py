"""Model-facing descriptions of the tool server's operations."""

RECORD_SHAPE = """{
  companyName: string;
  location: string;
  foundedYear: number;
  arr: number;
  industry: string;
  burnRate: number;
  exitStrategy: string;
  dealStatus: string;
  fundingStage: string;
  investmentAmount: number;
  investmentDate: string;
  keyMetrics: string;
  presentationId?: string;
}"""

FETCH_DATA = """Fetch every company record from the Notion database and write them to the \
'notion-data.csv' cache. Call this before 'extract-company-data' when the cache has not been \
created yet or when the user asks for fresh data."""

EXTRACT_COMPANY_DATA = f"""Extract the data for a single company from the 'notion-data.csv' cache.
This tool MUST be called before 'create-presentation'. The user will name the company; matching \
ignores case and surrounding whitespace. If the cache does not exist yet, call 'fetch-data' first.

The output is a JSON object with this shape:
{RECORD_SHAPE}"""

CREATE_PRESENTATION = f"""Create and style a Google Slides pitch deck for ONE company in the \
user's Google Drive. Call 'extract-company-data' first and pass its output unchanged as 'data'.

'data' must have this shape:
{RECORD_SHAPE}

The deck contains a title slide, a General Summary slide, an Investment Details slide and a \
Key Metrics slide. The tool returns the presentationId of the new deck; keep it to add custom \
slides later."""

ADD_CUSTOM_SLIDE = """Append one slide with a title and a paragraph of text to an existing \
presentation. Use the presentationId returned by 'create-presentation'. Write the slide content \
yourself from the company data or the user's instructions. Existing slides are not changed."""

ECHO = "Echo text from the user. Useful to check that the tool server is reachable."
